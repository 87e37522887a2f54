from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import require_api_key, tag_query
from app.schemas import (
    DataResponse,
    MessageResponse,
    PageMetadata,
    PageResult,
    TagDTO,
    TagQuery,
    TagResponse,
)
from app.services import tag_service

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("", response_model=DataResponse[PageResult[TagResponse]])
async def list_tags(query: TagQuery = Depends(tag_query), db: AsyncSession = Depends(get_db)):
    tags, total = await tag_service.get_tags(db, query)
    return {
        "status": 200,
        "message": "Tags retrieved successfully",
        "data": {
            "metadata": PageMetadata.build(query.pagination, total, len(tags)),
            "result": tags,
        },
    }


@router.get("/slug/{slug}", response_model=DataResponse[TagResponse])
async def get_tag_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    tag = await tag_service.get_tag_by_slug(db, slug)
    return {"status": 200, "message": "Tag retrieved successfully", "data": tag}


@router.get("/article/{article_id}", response_model=DataResponse[list[TagResponse]])
async def get_tags_by_article(article_id: int, db: AsyncSession = Depends(get_db)):
    tags = await tag_service.get_tags_by_article(db, article_id)
    return {"status": 200, "message": "Article tags retrieved successfully", "data": tags}


@router.get("/{tag_id}", response_model=DataResponse[TagResponse])
async def get_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    tag = await tag_service.get_tag(db, tag_id)
    return {"status": 200, "message": "Tag retrieved successfully", "data": tag}


@router.post(
    "",
    status_code=201,
    response_model=DataResponse[TagResponse],
    dependencies=[Depends(require_api_key)],
)
async def create_tag(data: TagDTO, db: AsyncSession = Depends(get_db)):
    tag = await tag_service.create_tag(db, data)
    return {"status": 201, "message": "Tag created successfully", "data": tag}


@router.put(
    "/{tag_id}",
    response_model=DataResponse[TagResponse],
    dependencies=[Depends(require_api_key)],
)
async def update_tag(tag_id: int, data: TagDTO, db: AsyncSession = Depends(get_db)):
    tag = await tag_service.update_tag(db, tag_id, data)
    return {"status": 200, "message": "Tag updated successfully", "data": tag}


@router.delete(
    "/{tag_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_api_key)],
)
async def delete_tag(tag_id: int, db: AsyncSession = Depends(get_db)):
    await tag_service.delete_tag(db, tag_id)
    return {"status": 200, "message": "Tag deleted successfully"}
