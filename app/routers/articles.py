from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import article_query, require_api_key
from app.schemas import (
    ArticleDTO,
    ArticleQuery,
    ArticleResponse,
    DataResponse,
    MessageResponse,
    PageMetadata,
    PageResult,
)
from app.services import article_service

router = APIRouter(prefix="/api/articles", tags=["articles"])


@router.get("", response_model=DataResponse[PageResult[ArticleResponse]])
async def list_articles(
    query: ArticleQuery = Depends(article_query),
    db: AsyncSession = Depends(get_db),
):
    articles, total = await article_service.get_articles(db, query)
    return {
        "status": 200,
        "message": "Articles retrieved successfully",
        "data": {
            "metadata": PageMetadata.build(query.pagination, total, len(articles)),
            "result": articles,
        },
    }


@router.get("/slug/{slug}", response_model=DataResponse[ArticleResponse])
async def get_article_by_slug(slug: str, db: AsyncSession = Depends(get_db)):
    article = await article_service.get_article_by_slug(db, slug)
    return {"status": 200, "message": "Article retrieved successfully", "data": article}


@router.get("/{article_id}", response_model=DataResponse[ArticleResponse])
async def get_article(article_id: int, db: AsyncSession = Depends(get_db)):
    article = await article_service.get_article(db, article_id)
    return {"status": 200, "message": "Article retrieved successfully", "data": article}


@router.post(
    "",
    status_code=201,
    response_model=DataResponse[ArticleResponse],
    dependencies=[Depends(require_api_key)],
)
async def create_article(data: ArticleDTO, db: AsyncSession = Depends(get_db)):
    article = await article_service.create_article(db, data)
    return {"status": 201, "message": "Article created successfully", "data": article}


@router.put(
    "/{article_id}",
    response_model=DataResponse[ArticleResponse],
    dependencies=[Depends(require_api_key)],
)
async def update_article(article_id: int, data: ArticleDTO, db: AsyncSession = Depends(get_db)):
    article = await article_service.update_article(db, article_id, data)
    return {"status": 200, "message": "Article updated successfully", "data": article}


@router.delete(
    "/{article_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_api_key)],
)
async def delete_article(article_id: int, db: AsyncSession = Depends(get_db)):
    await article_service.delete_article(db, article_id)
    return {"status": 200, "message": "Article deleted successfully"}


@router.post(
    "/{article_id}/publish",
    response_model=MessageResponse,
    dependencies=[Depends(require_api_key)],
)
async def publish_article(article_id: int, db: AsyncSession = Depends(get_db)):
    await article_service.publish_article(db, article_id)
    return {"status": 200, "message": "Article published successfully"}


@router.post(
    "/{article_id}/unpublish",
    response_model=MessageResponse,
    dependencies=[Depends(require_api_key)],
)
async def unpublish_article(article_id: int, db: AsyncSession = Depends(get_db)):
    await article_service.unpublish_article(db, article_id)
    return {"status": 200, "message": "Article unpublished successfully"}
