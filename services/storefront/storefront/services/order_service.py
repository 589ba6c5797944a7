from sqlalchemy.orm import Session, selectinload
from sqlalchemy import func
from typing import List
from uuid import UUID
from datetime import datetime, timezone
import logging

from storefront.models.order import Order, OrderItem
from storefront.kafka.producer import event_producer

logger = logging.getLogger(__name__)


def with_items_and_photos(query):
    return query.options(selectinload(Order.items).selectinload(OrderItem.photos))


class OrderService:
    """Customer-facing order operations; every query is scoped to the caller"""

    def __init__(self, db: Session):
        self.db = db

    def get_user_orders(self, user_id: UUID) -> List[Order]:
        return with_items_and_photos(self.db.query(Order)).filter(
            Order.user_id == user_id
        ).order_by(Order.created_at.desc()).all()

    def get_order_by_id(self, order_id: UUID, user_id: UUID) -> Order:
        order = with_items_and_photos(self.db.query(Order)).filter(
            Order.id == order_id,
            Order.user_id == user_id
        ).first()
        if not order:
            raise LookupError("Order not found")
        return order

    def get_user_order_stats(self, user_id: UUID) -> dict:
        rows = self.db.query(
            Order.status,
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_amount), 0)
        ).filter(Order.user_id == user_id).group_by(Order.status).all()

        counts = {status: count for status, count, _ in rows}
        return {
            "total_orders": sum(counts.values()),
            "total_spent": int(sum(total for _, _, total in rows)),
            "pending_orders": counts.get("pending", 0),
            "processing_orders": counts.get("processing", 0),
            "completed_orders": counts.get("delivered", 0),
            "cancelled_orders": counts.get("cancelled", 0),
        }

    def cancel_order(self, order_id: UUID, user_id: UUID) -> Order:
        """Cancel a pending order

        Raises:
            LookupError: the order does not exist or belongs to someone else
            ValueError: the order is past ``pending``
        """
        order = self.get_order_by_id(order_id, user_id)
        if order.status != "pending":
            raise ValueError("Order cannot be cancelled because it is already being processed")

        order.status = "cancelled"
        order.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(order)
        logger.info(f"Order {order.order_number} cancelled by user {user_id}")

        event_producer.publish_order_cancelled(
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=str(user_id)
        )
        event_producer.flush()

        return order
