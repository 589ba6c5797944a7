from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import List, Optional
from uuid import UUID
from datetime import datetime, timezone
import logging

from storefront.models.order import Order, OrderItem, OrderPhoto, ORDER_STATUSES, PAYMENT_STATUSES
from storefront.models.product import Product
from storefront.models.user import UserProfile
from storefront.services.order_service import with_items_and_photos
from storefront.kafka.producer import event_producer

logger = logging.getLogger(__name__)


class AdminOrderService:
    """Order management and dashboard figures for administrators"""

    def __init__(self, db: Session):
        self.db = db

    def _order_summary(self, order: Order) -> dict:
        order_dict = {column.key: getattr(order, column.key) for column in Order.__mapper__.column_attrs}
        order_dict["items"] = order.items
        order_dict["item_count"] = len(order.items)
        order_dict["photo_count"] = sum(len(item.photos) for item in order.items)
        return order_dict

    def get_all_orders(self, status: Optional[str] = None) -> List[dict]:
        query = with_items_and_photos(self.db.query(Order))
        if status:
            if status not in ORDER_STATUSES:
                raise ValueError(f"Unknown order status: {status}")
            query = query.filter(Order.status == status)
        orders = query.order_by(Order.created_at.desc()).all()
        return [self._order_summary(order) for order in orders]

    def get_order_by_id(self, order_id: UUID) -> Order:
        order = with_items_and_photos(self.db.query(Order)).filter(Order.id == order_id).first()
        if not order:
            raise LookupError("Order not found")
        return order

    def update_status(self, order_id: UUID, status: str) -> Order:
        if status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status: {status}")

        order = self.get_order_by_id(order_id)
        old_status = order.status
        order.status = status
        order.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(order)
        logger.info(f"Order {order.order_number} status {old_status} -> {status}")

        if old_status != status:
            event_producer.publish_order_status_changed(
                order_id=str(order.id),
                order_number=order.order_number,
                old_status=old_status,
                new_status=status
            )
            event_producer.flush()

        return order

    def update_payment_status(self, order_id: UUID, payment_status: str) -> Order:
        if payment_status not in PAYMENT_STATUSES:
            raise ValueError(f"Unknown payment status: {payment_status}")

        order = self.get_order_by_id(order_id)
        order.payment_status = payment_status
        order.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(order)
        logger.info(f"Order {order.order_number} payment status set to {payment_status}")
        return order

    def get_photos(self, order_item_id: UUID) -> List[OrderPhoto]:
        if not self.db.query(OrderItem.id).filter(OrderItem.id == order_item_id).first():
            raise LookupError("Order item not found")
        return self.db.query(OrderPhoto).filter(
            OrderPhoto.order_item_id == order_item_id
        ).order_by(OrderPhoto.sort_order.asc(), OrderPhoto.created_at.asc()).all()

    def get_dashboard_stats(self) -> dict:
        status_counts = dict(
            self.db.query(Order.status, func.count(Order.id)).group_by(Order.status).all()
        )
        total_revenue = self.db.query(func.coalesce(func.sum(Order.total_amount), 0)).scalar()

        return {
            "total_orders": sum(status_counts.values()),
            "total_revenue": int(total_revenue),
            "total_products": self.db.query(func.count(Product.id)).filter(Product.deleted_at.is_(None)).scalar(),
            "total_users": self.db.query(func.count(UserProfile.id)).scalar(),
            "pending_orders": status_counts.get("pending", 0),
            "processing_orders": status_counts.get("processing", 0),
            "completed_orders": status_counts.get("delivered", 0),
            "total_photos": self.db.query(func.count(OrderPhoto.id)).scalar(),
        }
