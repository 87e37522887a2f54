"""
Tag service: naming and slug rules for tags.

Uniqueness of both ``slug`` and ``name`` is checked by the repository.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidPayloadError
from app.models import Tag
from app.repositories import ArticleRepository, TagRepository
from app.schemas import TagDTO, TagQuery
from app.slug import slugify

logger = logging.getLogger(__name__)


def _validate_name(name: str) -> None:
    if not name.strip():
        raise InvalidPayloadError({"name": "Tag name is required"})


def _slug_from(name: str) -> str:
    slug = slugify(name)
    if not slug:
        raise InvalidPayloadError({"slug": "Cannot derive a slug; provide one explicitly"})
    return slug


async def get_tag(db: AsyncSession, tag_id: int) -> Tag:
    return await TagRepository(db).find_one(tag_id)


async def get_tag_by_slug(db: AsyncSession, slug: str) -> Tag:
    return await TagRepository(db).find_by_slug(slug)


async def get_tags(db: AsyncSession, query: TagQuery) -> tuple[list[Tag], int]:
    return await TagRepository(db).find_all(query)


async def get_tags_by_article(db: AsyncSession, article_id: int) -> list[Tag]:
    """
    Return the tags of an article, ordered by name.

    A missing article raises ``NotFoundError("Article")`` instead of
    yielding an empty list.
    """
    await ArticleRepository(db).find_one(article_id)
    return await TagRepository(db).find_by_article_id(article_id)


async def create_tag(db: AsyncSession, data: TagDTO) -> Tag:
    _validate_name(data.name)

    tag = Tag(
        name=data.name,
        description=data.description,
        slug=data.slug or _slug_from(data.name),
    )
    repo = TagRepository(db)
    await repo.create(tag)
    logger.info("Created tag id=%s name=%r", tag.id, tag.name)
    return await repo.find_one(tag.id)


async def update_tag(db: AsyncSession, tag_id: int, data: TagDTO) -> Tag:
    repo = TagRepository(db)
    current = await repo.find_one(tag_id)
    _validate_name(data.name)

    if data.slug:
        slug = data.slug
    elif data.name != current.name:
        slug = _slug_from(data.name)
    else:
        slug = current.slug

    await repo.update(Tag(id=tag_id, name=data.name, description=data.description, slug=slug))
    logger.info("Updated tag id=%s name=%r", tag_id, data.name)
    return await repo.find_one(tag_id)


async def delete_tag(db: AsyncSession, tag_id: int) -> None:
    await TagRepository(db).delete(tag_id)
    logger.info("Deleted tag id=%s", tag_id)
