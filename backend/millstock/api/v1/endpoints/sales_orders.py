"""
Sales Orders API Endpoints
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from millstock.api.v1.deps import get_actor, get_pagination_params
from millstock.db.session import get_db
from millstock.schemas.common import ListResponse, PaginationMeta, PaginationParams
from millstock.schemas.sales_order import SalesOrderCreate, SalesOrderListItem, SalesOrderResponse
from millstock.services import sales_order_service

router = APIRouter()


@router.get("/", response_model=ListResponse[SalesOrderListItem])
def list_sales_orders(
    status: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: Session = Depends(get_db),
):
    result = sales_order_service.list_sales_orders(
        db,
        status=status,
        customer_id=customer_id,
        start_date=start_date,
        end_date=end_date,
        offset=pagination.offset,
        limit=pagination.limit,
    )
    items = [SalesOrderListItem.model_validate(so) for so in result["items"]]
    return ListResponse(
        items=items,
        pagination=PaginationMeta(
            total=result["total"],
            offset=pagination.offset,
            limit=pagination.limit,
            returned=len(items),
        ),
    )


@router.get("/{order_id}", response_model=SalesOrderResponse)
def get_sales_order(order_id: int, db: Session = Depends(get_db)):
    return sales_order_service.get_sales_order(db, order_id)


@router.post("/", response_model=SalesOrderResponse, status_code=201)
def create_sales_order(
    request: SalesOrderCreate,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Create a sales order; non-draft orders deduct stock immediately"""
    order = sales_order_service.create_sales_order(db, request, created_by=actor)
    return sales_order_service.get_sales_order(db, order.id)


@router.post("/{order_id}/confirm", response_model=SalesOrderResponse)
def confirm_sales_order(
    order_id: int,
    make_payment: bool = Query(False),
    payment_method: Optional[str] = Query(None),
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    sales_order_service.confirm_sales_order(
        db, order_id, make_payment=make_payment, payment_method=payment_method, created_by=actor
    )
    return sales_order_service.get_sales_order(db, order_id)


@router.post("/{order_id}/cancel", response_model=SalesOrderResponse)
def cancel_sales_order(
    order_id: int,
    actor: Optional[str] = Depends(get_actor),
    db: Session = Depends(get_db),
):
    sales_order_service.cancel_sales_order(db, order_id, created_by=actor)
    return sales_order_service.get_sales_order(db, order_id)
