import secrets

from fastapi import Query, Security
from fastapi.security import APIKeyHeader

from app.config import settings
from app.exceptions import UnauthorizedError
from app.schemas import ArticleQuery, CategoryQuery, Pagination, TagQuery

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_api_key(api_key: str | None = Security(_api_key_header)) -> None:
    """
    Guard for mutating endpoints: the ``X-API-Key`` header must match
    ``settings.API_KEY`` (compared in constant time).
    """
    if not api_key:
        raise UnauthorizedError("X-API-Key header is required")
    if not secrets.compare_digest(api_key.encode(), settings.API_KEY.encode()):
        raise UnauthorizedError("Invalid API Key")


def article_query(
    page: int = Query(1),
    limit: int = Query(10),
    keyword: str = Query("", description="Substring matched against title or content."),
    category_id: int | None = Query(None, alias="categoryId"),
    tag_id: int | None = Query(None, alias="tagId"),
    published: bool | None = Query(None, description="true: published only, false: drafts only."),
) -> ArticleQuery:
    return ArticleQuery(
        pagination=Pagination(page=page, limit=limit),
        keyword=keyword,
        category_id=category_id,
        tag_id=tag_id,
        is_published=published,
    )


def category_query(
    page: int = Query(1),
    limit: int = Query(10),
    keyword: str = Query("", description="Substring matched against name or description."),
    parent_id: int | None = Query(
        None, alias="parentId", description="0 lists root categories only."
    ),
) -> CategoryQuery:
    return CategoryQuery(
        pagination=Pagination(page=page, limit=limit), keyword=keyword, parent_id=parent_id
    )


def tag_query(
    page: int = Query(1),
    limit: int = Query(10),
    keyword: str = Query("", description="Substring matched against name or description."),
) -> TagQuery:
    return TagQuery(pagination=Pagination(page=page, limit=limit), keyword=keyword)
