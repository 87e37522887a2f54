"""
Category repository: storage for the self-referencing category tree.

The tree is kept as rows carrying an optional ``parent_id``.  Structural
invariants enforced here:

- a ``parent_id`` must reference an existing category,
- a category can be neither its own parent nor a child of one of its
  descendants (the graph stays a forest),
- a category that still has children cannot be deleted.

These checks run in the application and are therefore advisory under
concurrent writers; a single writer (the admin UI) is always safe.
"""
import logging

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from app.exceptions import BadRequestError, InternalError, InvalidPayloadError, NotFoundError
from app.models import Category, article_categories, utcnow
from app.repositories.base import (
    Repository,
    integrity_error_to_app_error,
    wrap_db_errors,
)
from app.schemas import CategoryQuery

logger = logging.getLogger(__name__)

_DUPLICATE_MESSAGES = {"slug": "Slug already exists"}


class CategoryRepository(Repository):

    def _select(self):
        return (
            select(Category)
            .options(selectinload(Category.children))
            .execution_options(populate_existing=True)
        )

    @staticmethod
    def _apply_filters(stmt, query: CategoryQuery):
        if query.keyword:
            pattern = Repository._like(query.keyword)
            stmt = stmt.where(or_(Category.name.like(pattern), Category.description.like(pattern)))

        if query.parent_id is not None:
            if query.parent_id == 0:
                stmt = stmt.where(Category.parent_id.is_(None))
            else:
                stmt = stmt.where(Category.parent_id == query.parent_id)

        return stmt

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @wrap_db_errors("find category")
    async def find_one(self, category_id: int) -> Category:
        result = await self.session.execute(self._select().where(Category.id == category_id))
        category = result.scalar_one_or_none()
        if category is None:
            raise NotFoundError("Category")
        return category

    @wrap_db_errors("find category by slug")
    async def find_by_slug(self, slug: str) -> Category:
        result = await self.session.execute(self._select().where(Category.slug == slug))
        category = result.scalar_one_or_none()
        if category is None:
            raise NotFoundError("Category")
        return category

    @wrap_db_errors("find categories")
    async def find_all(self, query: CategoryQuery) -> tuple[list[Category], int]:
        total = await self._count(
            self._apply_filters(select(func.count()).select_from(Category), query)
        )

        page_q = (
            self._apply_filters(self._select(), query)
            .order_by(Category.name.asc(), Category.id.asc())
            .limit(query.pagination.effective_limit)
            .offset(query.pagination.offset)
        )
        result = await self.session.execute(page_q)
        return list(result.scalars().all()), total

    @wrap_db_errors("find child categories")
    async def find_children(self, parent_id: int) -> list[Category]:
        result = await self.session.execute(
            select(Category)
            .where(Category.parent_id == parent_id)
            .order_by(Category.name.asc(), Category.id.asc())
        )
        return list(result.scalars().all())

    @wrap_db_errors("get category hierarchy")
    async def get_hierarchy(self, category_id: int) -> list[Category]:
        """
        Return the ancestor chain ``[root, ..., parent, category]``.

        Raises ``NotFoundError`` when *category_id* itself does not exist.
        A dangling ``parent_id`` or a stored cycle is reported as an
        ``InternalError``.
        """
        category = await self.find_one(category_id)
        hierarchy = [category]
        visited = {category.id}

        parent_id = category.parent_id
        while parent_id:
            if parent_id in visited:
                raise InternalError(f"Category hierarchy of {category_id} contains a cycle")
            try:
                parent = await self.find_one(parent_id)
            except NotFoundError as exc:
                raise InternalError(f"Failed to get parent category: {exc.message}") from exc
            hierarchy.insert(0, parent)
            visited.add(parent.id)
            parent_id = parent.parent_id

        return hierarchy

    @wrap_db_errors("count categories by slug")
    async def count_by_slug(self, slug: str, exclude_id: int | None = None) -> int:
        criteria = [Category.slug == slug]
        if exclude_id is not None:
            criteria.append(Category.id != exclude_id)
        return await self._count_where(Category, *criteria)

    async def count_children(self, category_id: int) -> int:
        return await self._count_where(Category, Category.parent_id == category_id)

    async def is_descendant(self, category: Category, candidate_id: int) -> bool:
        """
        Return True when *candidate_id* lies in the subtree below *category*.

        The walk is breadth-first: the first level comes from the eagerly
        loaded ``children`` of *category*, every further level costs one
        query.  Visited ids are remembered so a malformed stored cycle
        cannot make the walk loop.
        """
        visited = {category.id}
        level = [child.id for child in category.children]
        while level:
            if candidate_id in level:
                return True
            visited.update(level)
            result = await self.session.execute(
                select(Category.id).where(Category.parent_id.in_(level))
            )
            level = [child_id for child_id in result.scalars().all() if child_id not in visited]
        return False

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _ensure_slug_available(self, slug: str, exclude_id: int | None = None) -> None:
        if await self.count_by_slug(slug, exclude_id) > 0:
            logger.debug("Rejected duplicate category slug %r", slug)
            raise InvalidPayloadError({"slug": "Slug already exists"})

    async def _ensure_parent_exists(self, parent_id: int) -> None:
        if await self._count_where(Category, Category.id == parent_id) == 0:
            raise InvalidPayloadError({"parentId": "Parent category does not exist"})

    @wrap_db_errors("create category")
    async def create(self, category: Category) -> Category:
        await self._ensure_slug_available(category.slug)

        if category.parent_id is not None and category.parent_id > 0:
            await self._ensure_parent_exists(category.parent_id)
        else:
            category.parent_id = None

        try:
            async with self.session.begin_nested():
                self.session.add(category)
        except IntegrityError as exc:
            raise integrity_error_to_app_error(exc, _DUPLICATE_MESSAGES) from exc
        return category

    @wrap_db_errors("update category")
    async def update(self, category: Category) -> None:
        """
        Write *category* (a transient value carrying the target ``id``) to
        the stored row, refusing any ``parent_id`` that would break the
        forest: a missing parent, the category itself, or one of its
        descendants.  ``None`` or ``0`` turns the category into a root.
        """
        existing = await self.find_one(category.id)

        if category.slug != existing.slug:
            await self._ensure_slug_available(category.slug, exclude_id=category.id)

        parent_id = category.parent_id
        if parent_id is not None and parent_id > 0:
            await self._ensure_parent_exists(parent_id)

            if parent_id == category.id:
                raise InvalidPayloadError({"parentId": "A category cannot be its own parent"})

            if await self.is_descendant(existing, parent_id):
                logger.debug(
                    "Rejected moving category %s under its descendant %s", category.id, parent_id
                )
                raise InvalidPayloadError(
                    {"parentId": "Cannot set a child category as the parent (would create a cycle)"}
                )
        else:
            parent_id = None

        try:
            async with self.session.begin_nested():
                await self.session.execute(
                    update(Category)
                    .where(Category.id == category.id)
                    .values(
                        name=category.name,
                        description=category.description,
                        slug=category.slug,
                        parent_id=parent_id,
                        updated_at=utcnow(),
                    )
                )
        except IntegrityError as exc:
            raise integrity_error_to_app_error(exc, _DUPLICATE_MESSAGES) from exc

    @wrap_db_errors("delete category")
    async def delete(self, category_id: int) -> None:
        if await self.count_children(category_id) > 0:
            raise BadRequestError(
                "Cannot delete a category with child categories. Move or delete children first."
            )

        async with self.session.begin_nested():
            await self.session.execute(
                delete(article_categories).where(article_categories.c.category_id == category_id)
            )
            result = await self.session.execute(delete(Category).where(Category.id == category_id))
            if result.rowcount == 0:
                raise NotFoundError("Category")
