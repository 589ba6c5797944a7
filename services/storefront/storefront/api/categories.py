from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from storefront.db.database import get_db
from storefront.schemas.category import CategoryResponse
from storefront.services.category_service import CategoryService

router = APIRouter(
    prefix="/categories",
    tags=["Categories"]
)


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    """Dependency to get category service"""
    return CategoryService(db)


@router.get(
    "",
    response_model=List[CategoryResponse],
    summary="List categories",
    description="""
    Get all active categories ordered by name. This is a public endpoint - no authentication required.
    """,
    responses={
        200: {"description": "List of categories"}
    }
)
async def list_categories(
    category_service: CategoryService = Depends(get_category_service)
):
    return category_service.list_categories()
