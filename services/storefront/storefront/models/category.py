from sqlalchemy import Column, Text, Boolean, DateTime, Uuid
from sqlalchemy.sql import func
import uuid
from storefront.db.database import Base


class ProductCategory(Base):
    __tablename__ = "product_categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    slug = Column(Text, nullable=False, unique=True)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
