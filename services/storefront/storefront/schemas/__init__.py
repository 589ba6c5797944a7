# Package exports - these allow cleaner imports like:
# from storefront.schemas import ProductCreate, CartResponse
from storefront.schemas.product import (
    ProductCreate, ProductUpdate, ProductResponse, AdminProductResponse,
    VariantCreate, VariantUpdate, VariantResponse
)
from storefront.schemas.category import CategoryCreate, CategoryResponse
from storefront.schemas.cart import CartItemAdd, CartItemUpdate, CartItemResponse, CartResponse
from storefront.schemas.photo import PhotoUploadResponse, PhotoUrlResponse, OrderPhotoResponse
from storefront.schemas.order import (
    CheckoutRequest, CheckoutResponse, UploadedPhoto, OrderResponse, AdminOrderResponse,
    OrderStatusUpdate, PaymentStatusUpdate, UserOrderStats, DashboardStats
)
from storefront.schemas.auth import SignUpRequest, SignInRequest, TokenResponse, UserResponse, ProfileResponse, MeResponse
