"""
Document Numbering Service

Sequential, collision-free document numbers backed by the
``document_counters`` table. The counter row is bumped with a single
``UPDATE ... SET last_value = last_value + 1`` inside the caller's
transaction, so concurrent creators serialise on the row lock and a
rolled-back creation gives its number back.

Formats:
    purchase orders  PO001, PO002, ...
    sales orders     INV001, INV002, ...
    petty cash       PC-000001, ...
    production       PROD-YYYYMMDD-00001, ... (sequence per day)
"""
from datetime import date
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from millstock.core.config import settings
from millstock.db.dialect import upsert_insert
from millstock.models.document_counter import DocumentCounter


PURCHASE_ORDER = "purchase_order"
SALES_ORDER = "sales_order"
PETTY_CASH = "petty_cash"
PRODUCTION = "production"


def next_value(db: Session, name: str) -> int:
    """Atomically increment and return the counter ``name``, creating it at 0 first."""
    table = DocumentCounter.__table__
    stmt = upsert_insert(db, table).values(name=name, last_value=0)
    db.execute(stmt.on_conflict_do_nothing(index_elements=[table.c.name]))

    db.execute(
        update(table)
        .where(table.c.name == name)
        .values(last_value=table.c.last_value + 1)
    )
    return db.execute(
        select(table.c.last_value).where(table.c.name == name)
    ).scalar_one()


def next_purchase_order_number(db: Session) -> str:
    seq = next_value(db, PURCHASE_ORDER)
    return f"{settings.PURCHASE_ORDER_PREFIX}{seq:0{settings.DOCUMENT_NUMBER_WIDTH}d}"


def next_sales_order_number(db: Session) -> str:
    seq = next_value(db, SALES_ORDER)
    return f"{settings.SALES_ORDER_PREFIX}{seq:0{settings.DOCUMENT_NUMBER_WIDTH}d}"


def next_petty_cash_number(db: Session) -> str:
    seq = next_value(db, PETTY_CASH)
    return f"{settings.PETTY_CASH_PREFIX}{seq:06d}"


def next_production_number(db: Session, on: Optional[date] = None) -> str:
    """Production numbers restart every day: PROD-20260115-00001."""
    day = (on or date.today()).strftime("%Y%m%d")
    seq = next_value(db, f"{PRODUCTION}:{day}")
    return f"{settings.PRODUCTION_PREFIX}{day}-{seq:05d}"
