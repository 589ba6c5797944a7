# Package exports - these allow cleaner imports like:
# from storefront.models import Product, ProductCategory
# Used by alembic/env.py and the test suite to register every table on Base.metadata
from storefront.models.category import ProductCategory
from storefront.models.product import Product, ProductVariant
from storefront.models.user import User, UserSession, UserProfile
from storefront.models.cart import CartItem
from storefront.models.order import Order, OrderItem, OrderPhoto, ORDER_STATUSES, PAYMENT_STATUSES, PAYMENT_METHODS
