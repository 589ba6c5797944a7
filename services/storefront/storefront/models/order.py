from sqlalchemy import Column, BigInteger, Integer, Text, String, DateTime, ForeignKey, CheckConstraint, Index, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid
from storefront.db.database import Base, JSONType

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")
PAYMENT_STATUSES = ("pending", "paid", "failed", "refunded")
PAYMENT_METHODS = ("transfer", "cod")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    order_number = Column(Text, nullable=False, unique=True)
    status = Column(String(20), nullable=False, default="pending")
    customer_name = Column(Text, nullable=False)
    customer_email = Column(Text, nullable=False)
    customer_phone = Column(Text, nullable=False)
    shipping_address = Column(JSONType, nullable=False)
    subtotal = Column(BigInteger, nullable=False)
    shipping_fee = Column(BigInteger, nullable=False, default=0)
    tax_amount = Column(BigInteger, nullable=False, default=0)
    discount_amount = Column(BigInteger, nullable=False, default=0)
    total_amount = Column(BigInteger, nullable=False)
    payment_method = Column(String(20), nullable=False, default="transfer")
    payment_status = Column(String(20), nullable=False, default="pending")
    notes = Column(Text)
    # "metadata" is reserved on declarative classes
    order_metadata = Column("metadata", JSONType)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'processing', 'shipped', 'delivered', 'cancelled')",
            name="order_status_valid"
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid', 'failed', 'refunded')",
            name="payment_status_valid"
        ),
        Index("idx_orders_user", "user_id"),
        Index("idx_orders_status", "status"),
    )

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.created_at"
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Uuid, ForeignKey("products.id", ondelete="SET NULL"))
    variant_id = Column(Uuid, ForeignKey("product_variants.id", ondelete="SET NULL"))
    product_name = Column(Text, nullable=False)
    variant_name = Column(Text)
    price = Column(BigInteger, nullable=False)
    quantity = Column(Integer, nullable=False)
    subtotal = Column(BigInteger, nullable=False)
    product_data = Column(JSONType)  # Snapshot of images and sku at order time
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_order_items_order", "order_id"),
    )

    order = relationship("Order", back_populates="items")
    photos = relationship(
        "OrderPhoto",
        back_populates="order_item",
        cascade="all, delete-orphan",
        order_by=lambda: [OrderPhoto.sort_order, OrderPhoto.created_at]
    )


class OrderPhoto(Base):
    __tablename__ = "order_photos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_item_id = Column(Uuid, ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False)
    file_name = Column(Text, nullable=False)
    file_path = Column(Text, nullable=False)
    file_size = Column(BigInteger)
    mime_type = Column(Text)
    upload_status = Column(String(20), nullable=False, default="completed")
    sort_order = Column(Integer, nullable=False, default=0)
    photo_metadata = Column("metadata", JSONType)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_order_photos_item", "order_item_id"),
    )

    order_item = relationship("OrderItem", back_populates="photos")
