"""
Order Services

CRUD for orders. Every query is filtered by the caller's account id, so an
account can never read or change another account's orders.

Author: Khalil Bannouri
Version: 3.0.0
"""

import logging
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import OrderNotFound
from app.database import transaction
from app.models import Order, OrderItem, OrderStatus, OrderType

logger = logging.getLogger(__name__)


def calculate_total(items: Iterable) -> float:
    """Sum of price * quantity over the order lines."""
    return round(sum(item.price * item.quantity for item in items), 2)


async def create_order(
    session: AsyncSession,
    account_id: str,
    customer_name: str,
    order_type: OrderType,
    items: list,
) -> Order:
    """
    Create an order with its items.

    Args:
        items: Objects with ``name``, ``price`` and ``quantity``
    """
    order = Order(
        account_id=account_id,
        customer_name=customer_name,
        order_type=order_type,
        status=OrderStatus.PENDING,
        total_amount=calculate_total(items),
        items=[
            OrderItem(name=item.name, price=item.price, quantity=item.quantity)
            for item in items
        ],
    )

    async with transaction(session):
        session.add(order)

    logger.info(f"Order #{order.id} created for account {account_id}")
    return order


async def list_orders(
    session: AsyncSession,
    account_id: str,
    skip: int = 0,
    limit: int = 10,
    status: Optional[OrderStatus] = None,
) -> tuple[int, list[Order]]:
    """Retrieve a page of the account's orders, newest first."""
    query = (
        select(Order)
        .where(Order.account_id == account_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )
    count_query = select(func.count(Order.id)).where(Order.account_id == account_id)

    if status is not None:
        query = query.where(Order.status == status)
        count_query = count_query.where(Order.status == status)

    async with transaction(session):
        total_result = await session.execute(count_query)
        total = total_result.scalar() or 0

        result = await session.execute(query.offset(skip).limit(limit))
        page = list(result.scalars().all())
    return total, page


async def _load_order(session: AsyncSession, account_id: str, order_id: int) -> Order:
    result = await session.execute(
        select(Order).where(Order.id == order_id, Order.account_id == account_id)
    )
    order = result.scalar_one_or_none()

    if order is None:
        raise OrderNotFound(f"Order #{order_id} not found")
    return order


async def get_order(session: AsyncSession, account_id: str, order_id: int) -> Order:
    async with transaction(session):
        return await _load_order(session, account_id, order_id)


async def update_order_status(
    session: AsyncSession,
    account_id: str,
    order_id: int,
    status: OrderStatus,
) -> Order:
    async with transaction(session):
        order = await _load_order(session, account_id, order_id)
        order.status = status

    logger.info(f"Order #{order_id} moved to {status.value}")
    return order


async def delete_order(session: AsyncSession, account_id: str, order_id: int) -> None:
    async with transaction(session):
        order = await _load_order(session, account_id, order_id)
        await session.delete(order)

    logger.info(f"Order #{order_id} deleted")


async def count_orders(session: AsyncSession) -> int:
    result = await session.execute(select(func.count(Order.id)))
    return result.scalar() or 0
