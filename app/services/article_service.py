"""
Article service: business rules for the Article aggregate.

Design notes
------------
- The slug is derived from the title whenever the caller does not supply
  one.  On update it is only regenerated when the title actually changed,
  so renaming nothing never breaks existing URLs.
- Category and tag ids in the payload are resolved through their
  repositories before anything is written.  A missing category or tag is
  the client's mistake, so the ``NotFoundError`` is recast as an
  ``InvalidPayloadError`` on ``categoryIds`` / ``tagIds``.
- Writes go through a transient ``Article`` value handed to the
  repository; the persistent instance is only ever read, then re-read once
  the write is done so callers get fully loaded associations.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import BadRequestError, InvalidPayloadError, NotFoundError
from app.models import Article, Category, Tag, utcnow
from app.repositories import ArticleRepository, CategoryRepository, TagRepository
from app.schemas import ArticleDTO, ArticleQuery
from app.slug import slugify

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _slug_from(text: str) -> str:
    slug = slugify(text)
    if not slug:
        raise InvalidPayloadError({"slug": "Cannot derive a slug; provide one explicitly"})
    return slug


def _check_published_at(value: datetime | None) -> None:
    # DTO values are always offset-aware.
    if value is not None and value > utcnow():
        raise InvalidPayloadError({"publishedAt": "Published date cannot be in the future"})


async def _resolve_categories(db: AsyncSession, category_ids: list[int]) -> list[Category]:
    repo = CategoryRepository(db)
    categories: list[Category] = []
    for category_id in dict.fromkeys(category_ids):
        try:
            categories.append(await repo.find_one(category_id))
        except NotFoundError as exc:
            raise InvalidPayloadError({"categoryIds": "Invalid category ID"}) from exc
    return categories


async def _resolve_tags(db: AsyncSession, tag_ids: list[int]) -> list[Tag]:
    repo = TagRepository(db)
    tags: list[Tag] = []
    for tag_id in dict.fromkeys(tag_ids):
        try:
            tags.append(await repo.find_one(tag_id))
        except NotFoundError as exc:
            raise InvalidPayloadError({"tagIds": "Invalid tag ID"}) from exc
    return tags


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def get_article(db: AsyncSession, article_id: int) -> Article:
    return await ArticleRepository(db).find_one(article_id)


async def get_article_by_slug(db: AsyncSession, slug: str) -> Article:
    return await ArticleRepository(db).find_by_slug(slug)


async def get_articles(db: AsyncSession, query: ArticleQuery) -> tuple[list[Article], int]:
    return await ArticleRepository(db).find_all(query)


async def create_article(db: AsyncSession, data: ArticleDTO) -> Article:
    """
    Create an article and return it with categories and tags loaded.

    Raises ``InvalidPayloadError`` when the slug is taken or a referenced
    category/tag does not exist.
    """
    _check_published_at(data.published_at)

    article = Article(
        title=data.title,
        content=data.content,
        slug=data.slug or _slug_from(data.title),
        published_at=data.published_at,
        categories=await _resolve_categories(db, data.category_ids),
        tags=await _resolve_tags(db, data.tag_ids),
    )

    repo = ArticleRepository(db)
    await repo.create(article)
    logger.info("Created article id=%s slug=%r", article.id, article.slug)
    return await repo.find_one(article.id)


async def update_article(db: AsyncSession, article_id: int, data: ArticleDTO) -> Article:
    """
    Replace the scalar fields of an article and return the stored result.

    Slug policy: an explicit ``data.slug`` wins; otherwise the slug is
    regenerated from the new title when the title changed, and kept as is
    when it did not.  ``data.published_at`` only applies when set.  Empty
    ``category_ids`` / ``tag_ids`` leave the stored associations untouched.
    """
    repo = ArticleRepository(db)
    current = await repo.find_one(article_id)

    if data.slug:
        slug = data.slug
    elif data.title != current.title:
        slug = _slug_from(data.title)
    else:
        slug = current.slug

    if data.published_at is not None:
        _check_published_at(data.published_at)
        published_at = data.published_at
    else:
        published_at = current.published_at

    changes = Article(
        id=article_id,
        title=data.title,
        content=data.content,
        slug=slug,
        published_at=published_at,
        categories=await _resolve_categories(db, data.category_ids),
        tags=await _resolve_tags(db, data.tag_ids),
    )
    await repo.update(changes)
    logger.info("Updated article id=%s slug=%r", article_id, slug)
    return await repo.find_one(article_id)


async def delete_article(db: AsyncSession, article_id: int) -> None:
    await ArticleRepository(db).delete(article_id)
    logger.info("Deleted article id=%s", article_id)


async def publish_article(db: AsyncSession, article_id: int) -> None:
    """Publish an article now.  Articles with blank content are refused."""
    repo = ArticleRepository(db)
    article = await repo.find_one(article_id)
    if not article.content.strip():
        raise BadRequestError("Cannot publish an article without content")

    await repo.publish(article_id, utcnow().isoformat())
    logger.info("Published article id=%s", article_id)


async def unpublish_article(db: AsyncSession, article_id: int) -> None:
    repo = ArticleRepository(db)
    await repo.find_one(article_id)
    await repo.unpublish(article_id)
    logger.info("Unpublished article id=%s", article_id)
