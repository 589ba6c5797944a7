from sqlalchemy import Column, Integer, DateTime, ForeignKey, CheckConstraint, Index, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid
from storefront.db.database import Base


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False)
    variant_id = Column(Uuid, ForeignKey("product_variants.id", ondelete="CASCADE"))
    quantity = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="positive_quantity"),
        Index("idx_cart_items_user", "user_id"),
    )

    product = relationship("Product", lazy="joined")
    variant = relationship("ProductVariant", lazy="joined")

    @property
    def price(self) -> int:
        """Unit price: the variant's price when a variant is chosen, else the product's"""
        if self.variant_id and self.variant is not None:
            return self.variant.price
        return self.product.price

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity
