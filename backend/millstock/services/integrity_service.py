"""
Integrity checks

Compare the materialised client balances and stock positions with the sum
of their append-only logs. An empty result means every balance and
position matches its history.
"""
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from millstock.logging_config import get_logger
from millstock.models.client import Client, ClientLedgerEntry
from millstock.models.inventory import StockMovement, StockPosition

logger = get_logger(__name__)

TOLERANCE = Decimal("0.0001")


def check_client_balances(db: Session) -> List[Dict[str, Any]]:
    """Clients whose balance differs from the sum of their ledger entries."""
    sums = dict(
        db.query(ClientLedgerEntry.client_id, func.coalesce(func.sum(ClientLedgerEntry.amount), 0))
        .group_by(ClientLedgerEntry.client_id)
        .all()
    )
    discrepancies = []
    for client_id, balance in db.query(Client.id, Client.balance).all():
        expected = Decimal(str(sums.get(client_id, 0)))
        actual = Decimal(str(balance or 0))
        if abs(actual - expected) > TOLERANCE:
            discrepancies.append({"client_id": client_id, "balance": actual, "ledger_total": expected})

    if discrepancies:
        logger.warning("Client balance discrepancies found", extra={"count": len(discrepancies)})
    return discrepancies


def check_stock_positions(db: Session) -> List[Dict[str, Any]]:
    """Positions whose quantity differs from the sum of their movements, or that went negative."""
    sums = {
        (product_id, warehouse_id): total
        for product_id, warehouse_id, total in (
            db.query(
                StockMovement.product_id,
                StockMovement.warehouse_id,
                func.coalesce(func.sum(StockMovement.quantity), 0),
            )
            .group_by(StockMovement.product_id, StockMovement.warehouse_id)
            .all()
        )
    }
    positions = {
        (p.product_id, p.warehouse_id): Decimal(str(p.quantity))
        for p in db.query(StockPosition).populate_existing().all()
    }

    discrepancies = []
    for key in sorted(set(sums) | set(positions)):
        expected = Decimal(str(sums.get(key, 0)))
        actual = positions.get(key, Decimal("0"))
        if abs(actual - expected) > TOLERANCE or actual < 0:
            discrepancies.append({
                "product_id": key[0],
                "warehouse_id": key[1],
                "quantity": actual,
                "movement_total": expected,
            })

    if discrepancies:
        logger.warning("Stock position discrepancies found", extra={"count": len(discrepancies)})
    return discrepancies
