from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
from storefront.db.database import get_db
from storefront.schemas.product import ProductResponse, VariantResponse
from storefront.services.product_service import ProductService

router = APIRouter(
    prefix="/products",
    tags=["Products"]
)


def get_product_service(db: Session = Depends(get_db)) -> ProductService:
    """Dependency to get product service"""
    return ProductService(db)


@router.get(
    "",
    response_model=List[ProductResponse],
    summary="Browse products",
    description="""
    Browse and search the catalog. This is a public endpoint - no authentication required.

    **Filters:**
    - `category`: category slug
    - `featured`: only featured (true) or only non-featured (false) products
    - `min_price` / `max_price`: applied only when both are given
    - `search`: case-insensitive match on name or description

    **Sorting:**
    - `sort_by`: `created_at` (default), `name` or `price`
    - `sort_order`: `desc` (default) or `asc`

    Only active, non-deleted products are returned.
    """,
    responses={
        200: {"description": "Matching products"},
        422: {"description": "Invalid filter value"}
    }
)
async def list_products(
    category: Optional[str] = Query(None, description="Category slug"),
    featured: Optional[bool] = Query(None, description="Filter by featured flag"),
    min_price: Optional[int] = Query(None, ge=0, description="Lower price bound (requires max_price)"),
    max_price: Optional[int] = Query(None, ge=0, description="Upper price bound (requires min_price)"),
    search: Optional[str] = Query(None, min_length=1, description="Search term"),
    sort_by: str = Query("created_at", pattern="^(created_at|name|price)$", description="Sort column"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$", description="Sort direction"),
    product_service: ProductService = Depends(get_product_service)
):
    filters = {
        "is_featured": featured,
        "min_price": min_price,
        "max_price": max_price,
        "sort_by": sort_by,
        "sort_order": sort_order,
    }
    if search:
        products = product_service.search_products(search, category_slug=category, **filters)
    elif category:
        products = product_service.get_products_by_category(category, **filters)
    else:
        products = product_service.get_products(**filters)
    return [product_service._product_to_response_dict(product) for product in products]


@router.get(
    "/featured",
    response_model=List[ProductResponse],
    summary="Featured products",
    description="Active featured products ordered by their `sort_order`, for the home page.",
    responses={
        200: {"description": "Featured products"}
    }
)
async def list_featured_products(
    limit: int = Query(8, ge=1, le=50, description="Maximum number of products"),
    product_service: ProductService = Depends(get_product_service)
):
    products = product_service.get_featured_products(limit=limit)
    return [product_service._product_to_response_dict(product) for product in products]


@router.get(
    "/{product_id}/variants",
    response_model=List[VariantResponse],
    summary="Product variants",
    description="Active variants of a product ordered by `sort_order`.",
    responses={
        200: {"description": "Variants (empty when the product has none)"}
    }
)
async def list_product_variants(
    product_id: UUID,
    product_service: ProductService = Depends(get_product_service)
):
    return product_service.get_product_variants(product_id)


@router.get(
    "/{slug}",
    response_model=ProductResponse,
    summary="Get product by slug",
    description="""
    Get product details by URL slug. This is a public endpoint - no authentication required.

    **Note:** Inactive and deleted products are not returned.
    """,
    responses={
        200: {"description": "Product found"},
        404: {"description": "Product not found"}
    }
)
async def get_product(
    slug: str,
    product_service: ProductService = Depends(get_product_service)
):
    try:
        product = product_service.get_product_by_slug(slug)
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return product_service._product_to_response_dict(product)
