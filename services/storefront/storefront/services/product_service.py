from sqlalchemy.orm import Session, selectinload
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from typing import List, Optional
from uuid import UUID
from datetime import datetime, timezone
import logging

from storefront.config import settings
from storefront.models.category import ProductCategory
from storefront.models.product import Product, ProductVariant
from storefront.models.cart import CartItem
from storefront.models.order import OrderItem
from storefront.schemas.product import ProductCreate, ProductUpdate, VariantCreate, VariantUpdate
from storefront.services import get_image_provider
from storefront.services.pricing import (
    format_price, get_main_image, has_discount, get_discount_percentage, generate_slug
)
from storefront.kafka.producer import event_producer

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "created_at": Product.created_at,
    "name": Product.name,
    "price": Product.price,
}


class ProductService:
    """Service layer for product operations"""

    def __init__(self, db: Session):
        self.db = db
        self.image_provider = get_image_provider()

    def _convert_image_ids_to_urls(self, image_ids: Optional[List[str]]) -> List[str]:
        """Turn stored storage keys into public URLs; absolute URLs pass through"""
        if not image_ids:
            return []
        urls = []
        for image_id in image_ids:
            if image_id.startswith(("http://", "https://", "/")):
                urls.append(image_id)
                continue
            try:
                urls.append(self.image_provider.get_image_url(image_id))
            except Exception as e:
                logger.warning(f"Failed to convert image ID {image_id} to URL: {e}")
        return urls

    def _product_to_response_dict(self, product: Product, admin: bool = False) -> dict:
        """Convert Product model to a response dict with derived display fields"""
        images = self._convert_image_ids_to_urls(product.images)
        variants = [
            v for v in product.variants
            if admin or v.is_active
        ]
        product_dict = {
            "id": product.id,
            "category_id": product.category_id,
            "category": product.category,
            "name": product.name,
            "slug": product.slug,
            "description": product.description,
            "short_description": product.short_description,
            "price": product.price,
            "original_price": product.original_price,
            "formatted_price": format_price(product.price, settings.currency),
            "sku": product.sku,
            "stock_quantity": product.stock_quantity,
            "images": images,
            "main_image": get_main_image(images),
            "has_discount": has_discount(product.price, product.original_price),
            "discount_percentage": get_discount_percentage(product.price, product.original_price),
            "is_active": product.is_active,
            "is_featured": product.is_featured,
            "sort_order": product.sort_order,
            "variants": variants,
            "created_at": product.created_at,
            "updated_at": product.updated_at,
        }
        if admin:
            product_dict["category_name"] = product.category.name if product.category else "Uncategorized"
            product_dict["deleted_at"] = product.deleted_at
        return product_dict

    def _active_products(self):
        return self.db.query(Product).options(selectinload(Product.variants)).filter(
            Product.is_active.is_(True),
            Product.deleted_at.is_(None)
        )

    # ---- public catalog ----

    def get_products(
        self,
        category_slug: Optional[str] = None,
        is_featured: Optional[bool] = None,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc"
    ) -> List[Product]:
        """List active products with optional filters

        The price range applies only when both bounds are given.
        """
        query = self._active_products()

        if category_slug:
            query = query.join(ProductCategory, Product.category_id == ProductCategory.id).filter(
                ProductCategory.slug == category_slug
            )

        if is_featured is not None:
            query = query.filter(Product.is_featured.is_(is_featured))

        if min_price is not None and max_price is not None:
            query = query.filter(Product.price >= min_price, Product.price <= max_price)

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))

        column = SORT_COLUMNS.get(sort_by)
        if column is None:
            raise ValueError(f"Unsupported sort column: {sort_by}")
        query = query.order_by(column.asc() if sort_order == "asc" else column.desc())

        products = query.all()
        logger.info(f"Found {len(products)} products (category={category_slug}, search={search})")
        return products

    def get_products_by_category(self, category_slug: str, **filters) -> List[Product]:
        return self.get_products(category_slug=category_slug, **filters)

    def search_products(self, term: str, **filters) -> List[Product]:
        return self.get_products(search=term, **filters)

    def get_featured_products(self, limit: int = 8) -> List[Product]:
        return self._active_products().filter(
            Product.is_featured.is_(True)
        ).order_by(Product.sort_order.asc()).limit(limit).all()

    def get_product_by_slug(self, slug: str) -> Product:
        product = self._active_products().filter(Product.slug == slug).first()
        if not product:
            raise LookupError("Product not found")
        return product

    def get_product_variants(self, product_id: UUID) -> List[ProductVariant]:
        return self.db.query(ProductVariant).filter(
            ProductVariant.product_id == product_id,
            ProductVariant.is_active.is_(True)
        ).order_by(ProductVariant.sort_order.asc()).all()

    # ---- admin ----

    def list_all_products(self) -> List[Product]:
        """All non-deleted products, newest first, active or not"""
        return self.db.query(Product).options(selectinload(Product.variants)).filter(
            Product.deleted_at.is_(None)
        ).order_by(Product.created_at.desc()).all()

    def get_product_by_id(self, product_id: UUID) -> Product:
        product = self.db.query(Product).filter(
            Product.id == product_id,
            Product.deleted_at.is_(None)
        ).first()

        if not product:
            raise LookupError("Product not found")

        return product

    def _validate_category(self, category_id: Optional[UUID]):
        if category_id is None:
            return
        category = self.db.query(ProductCategory).filter(ProductCategory.id == category_id).first()
        if not category:
            raise LookupError(f"Category not found: {category_id}")

    def _ensure_slug_available(self, slug: str, exclude_id: Optional[UUID] = None):
        query = self.db.query(Product).filter(Product.slug == slug)
        if exclude_id is not None:
            query = query.filter(Product.id != exclude_id)
        if query.first():
            raise ValueError(f"Product with slug '{slug}' already exists")

    def _commit(self, action: str):
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.error(f"Failed to {action}: {e}", exc_info=True)
            raise ValueError(f"Failed to {action}: conflicting data")

    def create_product(self, product_data: ProductCreate) -> Product:
        """Create a new product"""
        slug = product_data.slug or generate_slug(product_data.name)
        if not slug:
            raise ValueError("Product name must contain letters or digits")

        self._ensure_slug_available(slug)
        self._validate_category(product_data.category_id)

        product = Product(
            category_id=product_data.category_id,
            name=product_data.name,
            slug=slug,
            description=product_data.description,
            short_description=product_data.short_description,
            price=product_data.price,
            original_price=product_data.original_price,
            sku=product_data.sku,
            stock_quantity=product_data.stock_quantity,
            images=product_data.images or [],
            is_active=product_data.is_active,
            is_featured=product_data.is_featured,
            sort_order=product_data.sort_order
        )

        self.db.add(product)
        self._commit("create product")
        self.db.refresh(product)
        logger.info(f"Created product {product.slug} ({product.id})")

        event_producer.publish_product_created(
            product_id=str(product.id),
            slug=product.slug,
            name=product.name,
            price=product.price
        )
        event_producer.flush()

        return product

    def update_product(self, product_id: UUID, product_data: ProductUpdate) -> Product:
        """Partial update; omitted fields remain unchanged"""
        product = self.get_product_by_id(product_id)

        update_data = product_data.model_dump(exclude_unset=True)
        if "slug" in update_data and update_data["slug"]:
            self._ensure_slug_available(update_data["slug"], exclude_id=product.id)
        if "category_id" in update_data:
            self._validate_category(update_data["category_id"])

        for field, value in update_data.items():
            setattr(product, field, value)
        product.updated_at = datetime.now(timezone.utc)

        self._commit("update product")
        self.db.refresh(product)
        logger.info(f"Updated product {product.slug} ({product.id}): {sorted(update_data)}")

        event_producer.publish_product_updated(
            product_id=str(product.id),
            slug=product.slug,
            name=product.name,
            price=product.price
        )
        event_producer.flush()

        return product

    def delete_product(self, product_id: UUID) -> None:
        """Soft delete; the row is kept for order history"""
        product = self.get_product_by_id(product_id)

        product.is_active = False
        product.deleted_at = datetime.now(timezone.utc)
        self.db.commit()
        logger.info(f"Soft deleted product {product.slug} ({product.id})")

        event_producer.publish_product_deleted(product_id=str(product.id), slug=product.slug)
        event_producer.flush()

    def create_variant(self, product_id: UUID, variant_data: VariantCreate) -> ProductVariant:
        product = self.get_product_by_id(product_id)

        variant = ProductVariant(product_id=product.id, **variant_data.model_dump())
        self.db.add(variant)
        self._commit("create variant")
        self.db.refresh(variant)
        logger.info(f"Created variant {variant.name} for product {product.slug}")
        return variant

    def _get_variant(self, variant_id: UUID) -> ProductVariant:
        variant = self.db.query(ProductVariant).filter(ProductVariant.id == variant_id).first()
        if not variant:
            raise LookupError("Variant not found")
        return variant

    def update_variant(self, variant_id: UUID, variant_data: VariantUpdate) -> ProductVariant:
        variant = self._get_variant(variant_id)
        for field, value in variant_data.model_dump(exclude_unset=True).items():
            setattr(variant, field, value)
        self._commit("update variant")
        self.db.refresh(variant)
        return variant

    def delete_variant(self, variant_id: UUID) -> None:
        """Delete a variant, dropping cart lines that reference it

        Order items keep their snapshot and lose the reference.
        """
        variant = self._get_variant(variant_id)
        self.db.query(CartItem).filter(CartItem.variant_id == variant.id).delete(synchronize_session=False)
        self.db.query(OrderItem).filter(OrderItem.variant_id == variant.id).update(
            {OrderItem.variant_id: None}, synchronize_session=False
        )
        self.db.delete(variant)
        self.db.commit()
        logger.info(f"Deleted variant {variant_id}")
