from sqlalchemy.orm import Session
from typing import Iterable, List, Optional
from uuid import UUID
import logging

from storefront.config import settings
from storefront.models.cart import CartItem
from storefront.models.product import Product, ProductVariant
from storefront.services.pricing import format_price

logger = logging.getLogger(__name__)


def summarize(items: Iterable) -> dict:
    """Reduce cart lines to their totals

    Each line needs ``price`` (unit price) and ``quantity``.
    """
    total_items = 0
    total_price = 0
    for item in items:
        total_items += item.quantity
        total_price += item.price * item.quantity
    return {"total_items": total_items, "total_price": total_price}


class CartService:
    """Service layer for a user's shopping cart"""

    def __init__(self, db: Session):
        self.db = db

    def get_items(self, user_id: UUID) -> List[CartItem]:
        """Cart lines with product and variant, newest first"""
        return self.db.query(CartItem).filter(
            CartItem.user_id == user_id
        ).order_by(CartItem.created_at.desc()).all()

    def load_cart(self, user_id: UUID) -> dict:
        items = self.get_items(user_id)
        totals = summarize(items)
        return {
            "items": items,
            "total_items": totals["total_items"],
            "total_price": totals["total_price"],
            "formatted_total_price": format_price(totals["total_price"], settings.currency),
        }

    def _get_owned_item(self, user_id: UUID, item_id: UUID) -> CartItem:
        item = self.db.query(CartItem).filter(
            CartItem.id == item_id,
            CartItem.user_id == user_id
        ).first()
        if not item:
            raise LookupError("Cart item not found")
        return item

    def add_to_cart(
        self,
        user_id: UUID,
        product_id: UUID,
        variant_id: Optional[UUID] = None,
        quantity: int = 1
    ) -> CartItem:
        """Add units of a product (and variant) to the cart

        An existing line for the same product and variant has its quantity
        increased instead of a second line being created.
        """
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        product = self.db.query(Product).filter(
            Product.id == product_id,
            Product.is_active.is_(True),
            Product.deleted_at.is_(None)
        ).first()
        if not product:
            raise LookupError("Product not found")

        if variant_id is not None:
            variant = self.db.query(ProductVariant).filter(
                ProductVariant.id == variant_id,
                ProductVariant.product_id == product_id,
                ProductVariant.is_active.is_(True)
            ).first()
            if not variant:
                raise LookupError("Variant not found")

        query = self.db.query(CartItem).filter(
            CartItem.user_id == user_id,
            CartItem.product_id == product_id
        )
        if variant_id is None:
            query = query.filter(CartItem.variant_id.is_(None))
        else:
            query = query.filter(CartItem.variant_id == variant_id)
        item = query.first()

        if item:
            item.quantity += quantity
            logger.info(f"Increased cart line {item.id} to {item.quantity} for user {user_id}")
        else:
            item = CartItem(
                user_id=user_id,
                product_id=product_id,
                variant_id=variant_id,
                quantity=quantity
            )
            self.db.add(item)
            logger.info(f"Added product {product_id} (variant {variant_id}) x{quantity} to cart of user {user_id}")

        self.db.commit()
        self.db.refresh(item)
        return item

    def update_cart_item(self, user_id: UUID, item_id: UUID, quantity: int) -> CartItem:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        item = self._get_owned_item(user_id, item_id)
        item.quantity = quantity
        self.db.commit()
        self.db.refresh(item)
        return item

    def remove_from_cart(self, user_id: UUID, item_id: UUID) -> None:
        item = self._get_owned_item(user_id, item_id)
        self.db.delete(item)
        self.db.commit()
        logger.info(f"Removed cart line {item_id} for user {user_id}")

    def clear_cart(self, user_id: UUID, commit: bool = True) -> int:
        """Delete every line in the user's cart; returns the number removed"""
        removed = self.db.query(CartItem).filter(
            CartItem.user_id == user_id
        ).delete(synchronize_session=False)
        if commit:
            self.db.commit()
        logger.info(f"Cleared {removed} cart line(s) for user {user_id}")
        return removed
