"""
API v1 Router
"""
from fastapi import APIRouter
from millstock.api.v1.endpoints import (
    purchase_orders,
    production,
    sales_orders,
    stock,
    petty_cash,
    wastage,
)
from millstock.schemas.common import ErrorResponse

# Error body produced by the exception handlers in millstock.main
ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Business rule validation failed"},
    404: {"model": ErrorResponse, "description": "Resource not found"},
    409: {"model": ErrorResponse, "description": "Already processed or not allowed in the current state"},
    422: {"model": ErrorResponse, "description": "Insufficient stock or malformed request"},
}

router = APIRouter(responses=ERROR_RESPONSES)

# Purchasing
router.include_router(
    purchase_orders.router,
    prefix="/purchase-orders",
    tags=["purchasing"]
)

# Production
router.include_router(
    production.router,
    prefix="/production",
    tags=["production"]
)

# Sales Orders
router.include_router(
    sales_orders.router,
    prefix="/sales-orders",
    tags=["sales"]
)

# Stock
router.include_router(
    stock.router,
    prefix="/stock",
    tags=["stock"]
)

# Petty cash and client ledger
router.include_router(
    petty_cash.router,
    prefix="/petty-cash",
    tags=["ledger"]
)

# Wastage
router.include_router(
    wastage.router,
    prefix="/wastage",
    tags=["wastage"]
)
