from sqlalchemy import Column, BigInteger, Integer, Text, Boolean, DateTime, ForeignKey, CheckConstraint, Index, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid
from storefront.db.database import Base, JSONType


class Product(Base):
    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category_id = Column(Uuid, ForeignKey("product_categories.id"))
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    description = Column(Text)
    short_description = Column(Text)
    price = Column(BigInteger, nullable=False)  # whole currency units (IDR has no minor unit)
    original_price = Column(BigInteger)
    sku = Column(Text)
    stock_quantity = Column(Integer, nullable=False, default=0)
    images = Column(JSONType)  # List of image URLs or storage paths
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    deleted_at = Column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint("price >= 0", name="non_negative_price"),
        CheckConstraint("stock_quantity >= 0", name="non_negative_stock"),
        Index("idx_products_category", "category_id"),
        Index("idx_products_active_featured", "is_active", "is_featured"),
    )

    category = relationship("ProductCategory", lazy="joined")
    variants = relationship(
        "ProductVariant",
        back_populates="product",
        order_by="ProductVariant.sort_order",
        cascade="all, delete-orphan"
    )


class ProductVariant(Base):
    __tablename__ = "product_variants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    sku = Column(Text)
    price = Column(BigInteger, nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("price >= 0", name="non_negative_variant_price"),
        Index("idx_variants_product", "product_id"),
    )

    product = relationship("Product", back_populates="variants")
