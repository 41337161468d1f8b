"""
Order Endpoints

All routes act on the authenticated caller's account only.

    - POST   /api/orders
    - GET    /api/orders
    - GET    /api/orders/{order_id}
    - PUT    /api/orders/{order_id}
    - DELETE /api/orders/{order_id}
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import AuthContext, RateLimit, get_current_auth
from app.models import OrderStatus
from app.schemas import (
    CreateOrderRequest,
    ErrorResponse,
    OrderListResponse,
    OrderResponse,
    UpdateOrderRequest,
)
from app.services import orders

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/orders",
    tags=["Orders"],
    dependencies=[Depends(RateLimit("api"))],
    responses={401: {"model": ErrorResponse}},
)


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_order(
    body: CreateOrderRequest,
    auth: AuthContext = Depends(get_current_auth),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    logger.info(f"Creating order for: {body.customer_name}")

    order = await orders.create_order(
        db,
        auth.account.id,
        customer_name=body.customer_name,
        order_type=body.order_type,
        items=body.items,
    )
    return OrderResponse.model_validate(order)


@router.get("", response_model=OrderListResponse)
async def list_orders(
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[OrderStatus] = Query(None),
    auth: AuthContext = Depends(get_current_auth),
    db: AsyncSession = Depends(get_db),
) -> OrderListResponse:
    """Retrieve paginated list of orders."""
    total, page = await orders.list_orders(
        db, auth.account.id, skip=skip, limit=limit, status=status
    )
    return OrderListResponse(
        total=total,
        orders=[OrderResponse.model_validate(order) for order in page],
    )


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_order(
    order_id: int,
    auth: AuthContext = Depends(get_current_auth),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await orders.get_order(db, auth.account.id, order_id)
    return OrderResponse.model_validate(order)


@router.put(
    "/{order_id}",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}},
)
async def update_order(
    order_id: int,
    body: UpdateOrderRequest,
    auth: AuthContext = Depends(get_current_auth),
    db: AsyncSession = Depends(get_db),
) -> OrderResponse:
    order = await orders.update_order_status(db, auth.account.id, order_id, body.status)
    return OrderResponse.model_validate(order)


@router.delete(
    "/{order_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_order(
    order_id: int,
    auth: AuthContext = Depends(get_current_auth),
    db: AsyncSession = Depends(get_db),
) -> Response:
    await orders.delete_order(db, auth.account.id, order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
