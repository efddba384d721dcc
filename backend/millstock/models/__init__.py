"""Database models"""
from millstock.models.client import Client, ClientLedgerEntry
from millstock.models.product import Product
from millstock.models.warehouse import Warehouse
from millstock.models.inventory import StockPosition, StockMovement
from millstock.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from millstock.models.production import ProductionRecord, WastageRecord
from millstock.models.sales_order import SalesOrder, SalesOrderItem
from millstock.models.petty_cash import PettyCash
from millstock.models.document_counter import DocumentCounter

__all__ = [
    # Parties
    "Client",
    "ClientLedgerEntry",
    # Reference data
    "Product",
    "Warehouse",
    # Stock
    "StockPosition",
    "StockMovement",
    # Purchasing & production
    "PurchaseOrder",
    "PurchaseOrderItem",
    "ProductionRecord",
    "WastageRecord",
    # Sales
    "SalesOrder",
    "SalesOrderItem",
    # Cash
    "PettyCash",
    # Numbering
    "DocumentCounter",
]
