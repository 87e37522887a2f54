from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import category_query, require_api_key
from app.schemas import (
    CategoryDTO,
    CategoryQuery,
    CategoryResponse,
    CategorySummary,
    DataResponse,
    MessageResponse,
    PageMetadata,
    PageResult,
)
from app.services import category_service

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("", response_model=DataResponse[PageResult[CategoryResponse]])
async def list_categories(
    query: CategoryQuery = Depends(category_query),
    db: AsyncSession = Depends(get_db),
):
    categories, total = await category_service.get_categories(db, query)
    return {
        "status": 200,
        "message": "Categories retrieved successfully",
        "data": {
            "metadata": PageMetadata.build(query.pagination, total, len(categories)),
            "result": categories,
        },
    }


@router.get("/slug/{slug}", response_model=DataResponse[CategoryResponse])
async def get_category_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    category = await category_service.get_category_by_slug(db, slug)
    return {"status": 200, "message": "Category retrieved successfully", "data": category}


@router.get("/{category_id}", response_model=DataResponse[CategoryResponse])
async def get_category(category_id: int, db: AsyncSession = Depends(get_db)):
    category = await category_service.get_category(db, category_id)
    return {"status": 200, "message": "Category retrieved successfully", "data": category}


@router.get("/{category_id}/hierarchy", response_model=DataResponse[list[CategoryResponse]])
async def get_category_hierarchy(category_id: int, db: AsyncSession = Depends(get_db)):
    hierarchy = await category_service.get_hierarchy(db, category_id)
    return {"status": 200, "message": "Category hierarchy retrieved successfully", "data": hierarchy}


@router.get("/{category_id}/children", response_model=DataResponse[list[CategorySummary]])
async def get_category_children(category_id: int, db: AsyncSession = Depends(get_db)):
    children = await category_service.get_children(db, category_id)
    return {"status": 200, "message": "Child categories retrieved successfully", "data": children}


@router.post(
    "",
    status_code=201,
    response_model=DataResponse[CategoryResponse],
    dependencies=[Depends(require_api_key)],
)
async def create_category(data: CategoryDTO, db: AsyncSession = Depends(get_db)):
    category = await category_service.create_category(db, data)
    return {"status": 201, "message": "Category created successfully", "data": category}


@router.put(
    "/{category_id}",
    response_model=DataResponse[CategoryResponse],
    dependencies=[Depends(require_api_key)],
)
async def update_category(category_id: int, data: CategoryDTO, db: AsyncSession = Depends(get_db)):
    category = await category_service.update_category(db, category_id, data)
    return {"status": 200, "message": "Category updated successfully", "data": category}


@router.delete(
    "/{category_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_api_key)],
)
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    await category_service.delete_category(db, category_id)
    return {"status": 200, "message": "Category deleted successfully"}
