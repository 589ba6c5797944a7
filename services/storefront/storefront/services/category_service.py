from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List
import logging

from storefront.models.category import ProductCategory
from storefront.schemas.category import CategoryCreate
from storefront.services.pricing import generate_slug

logger = logging.getLogger(__name__)


class CategoryService:
    """Service layer for category operations"""

    def __init__(self, db: Session):
        self.db = db

    def list_categories(self) -> List[ProductCategory]:
        """List active categories ordered by name"""
        return self.db.query(ProductCategory).filter(
            ProductCategory.is_active.is_(True)
        ).order_by(ProductCategory.name.asc()).all()

    def create_category(self, category_data: CategoryCreate) -> ProductCategory:
        """Create an active category; the slug defaults to one generated from the name"""
        slug = category_data.slug or generate_slug(category_data.name)
        if not slug:
            raise ValueError("Category name must contain letters or digits")

        if self.db.query(ProductCategory).filter(ProductCategory.slug == slug).first():
            raise ValueError(f"Category with slug '{slug}' already exists")

        category = ProductCategory(
            name=category_data.name,
            slug=slug,
            description=category_data.description,
            is_active=True
        )
        self.db.add(category)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Failed to create category {slug}: {e}", exc_info=True)
            raise ValueError(f"Category with slug '{slug}' already exists")
        self.db.refresh(category)

        logger.info(f"Created category {category.slug} ({category.id})")
        return category
