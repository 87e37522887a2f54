"""
Category service: naming and slug rules for categories.

Tree invariants (parent exists, no self-parenting, no cycles, no deleting
a category that still has children) are enforced by the repository; this
layer only validates the name and fills in the slug.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidPayloadError
from app.models import Category
from app.repositories import CategoryRepository
from app.schemas import CategoryDTO, CategoryQuery
from app.slug import slugify

logger = logging.getLogger(__name__)


def _validate_name(name: str) -> None:
    if not name.strip():
        raise InvalidPayloadError({"name": "Category name is required"})


def _slug_from(name: str) -> str:
    slug = slugify(name)
    if not slug:
        raise InvalidPayloadError({"slug": "Cannot derive a slug; provide one explicitly"})
    return slug


async def get_category(db: AsyncSession, category_id: int) -> Category:
    return await CategoryRepository(db).find_one(category_id)


async def get_category_by_slug(db: AsyncSession, slug: str) -> Category:
    return await CategoryRepository(db).find_by_slug(slug)


async def get_categories(db: AsyncSession, query: CategoryQuery) -> tuple[list[Category], int]:
    return await CategoryRepository(db).find_all(query)


async def get_children(db: AsyncSession, parent_id: int) -> list[Category]:
    return await CategoryRepository(db).find_children(parent_id)


async def get_hierarchy(db: AsyncSession, category_id: int) -> list[Category]:
    return await CategoryRepository(db).get_hierarchy(category_id)


async def create_category(db: AsyncSession, data: CategoryDTO) -> Category:
    _validate_name(data.name)

    category = Category(
        name=data.name,
        description=data.description,
        slug=data.slug or _slug_from(data.name),
        parent_id=data.parent_id,
    )
    repo = CategoryRepository(db)
    await repo.create(category)
    logger.info("Created category id=%s slug=%r parent_id=%s", category.id, category.slug, category.parent_id)
    return await repo.find_one(category.id)


async def update_category(db: AsyncSession, category_id: int, data: CategoryDTO) -> Category:
    """
    Replace name, description, slug and parent of a category.

    ``data.parent_id`` is applied verbatim: leaving it out moves the
    category to the root level.
    """
    repo = CategoryRepository(db)
    current = await repo.find_one(category_id)
    _validate_name(data.name)

    if data.slug:
        slug = data.slug
    elif data.name != current.name:
        slug = _slug_from(data.name)
    else:
        slug = current.slug

    await repo.update(
        Category(
            id=category_id,
            name=data.name,
            description=data.description,
            slug=slug,
            parent_id=data.parent_id,
        )
    )
    logger.info("Updated category id=%s parent_id=%s", category_id, data.parent_id)
    return await repo.find_one(category_id)


async def delete_category(db: AsyncSession, category_id: int) -> None:
    await CategoryRepository(db).delete(category_id)
    logger.info("Deleted category id=%s", category_id)
