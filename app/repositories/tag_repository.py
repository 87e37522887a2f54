import logging

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError

from app.exceptions import InvalidPayloadError, NotFoundError
from app.models import Tag, article_tags, utcnow
from app.repositories.base import (
    Repository,
    integrity_error_to_app_error,
    wrap_db_errors,
)
from app.schemas import TagQuery

logger = logging.getLogger(__name__)

_DUPLICATE_MESSAGES = {
    "slug": "Slug already exists",
    "name": "Tag name already exists",
}


class TagRepository(Repository):
    """Persistence for tags.  Both ``slug`` and ``name`` are unique."""

    def _select(self):
        return select(Tag).execution_options(populate_existing=True)

    @wrap_db_errors("find tag")
    async def find_one(self, tag_id: int) -> Tag:
        tag = (await self.session.execute(self._select().where(Tag.id == tag_id))).scalar_one_or_none()
        if tag is None:
            raise NotFoundError("Tag")
        return tag

    @wrap_db_errors("find tag by slug")
    async def find_by_slug(self, slug: str) -> Tag:
        tag = (await self.session.execute(self._select().where(Tag.slug == slug))).scalar_one_or_none()
        if tag is None:
            raise NotFoundError("Tag")
        return tag

    @wrap_db_errors("find tags")
    async def find_all(self, query: TagQuery) -> tuple[list[Tag], int]:
        count_q = select(func.count()).select_from(Tag)
        page_q = self._select()
        if query.keyword:
            pattern = self._like(query.keyword)
            keyword_filter = or_(Tag.name.like(pattern), Tag.description.like(pattern))
            count_q = count_q.where(keyword_filter)
            page_q = page_q.where(keyword_filter)

        total = await self._count(count_q)
        result = await self.session.execute(
            page_q.order_by(Tag.name.asc())
            .limit(query.pagination.effective_limit)
            .offset(query.pagination.offset)
        )
        return list(result.scalars().all()), total

    @wrap_db_errors("find article tags")
    async def find_by_article_id(self, article_id: int) -> list[Tag]:
        result = await self.session.execute(
            select(Tag)
            .join(article_tags, article_tags.c.tag_id == Tag.id)
            .where(article_tags.c.article_id == article_id)
            .order_by(Tag.name.asc())
        )
        return list(result.scalars().all())

    @wrap_db_errors("count tags by slug")
    async def count_by_slug(self, slug: str, exclude_id: int | None = None) -> int:
        criteria = [Tag.slug == slug]
        if exclude_id is not None:
            criteria.append(Tag.id != exclude_id)
        return await self._count_where(Tag, *criteria)

    @wrap_db_errors("count tags by name")
    async def count_by_name(self, name: str, exclude_id: int | None = None) -> int:
        criteria = [Tag.name == name]
        if exclude_id is not None:
            criteria.append(Tag.id != exclude_id)
        return await self._count_where(Tag, *criteria)

    async def _ensure_unique(self, tag: Tag, exclude_id: int | None = None, *, check_slug=True, check_name=True) -> None:
        if check_slug and await self.count_by_slug(tag.slug, exclude_id) > 0:
            raise InvalidPayloadError({"slug": "Slug already exists"})
        if check_name and await self.count_by_name(tag.name, exclude_id) > 0:
            raise InvalidPayloadError({"name": "Tag name already exists"})

    @wrap_db_errors("create tag")
    async def create(self, tag: Tag) -> Tag:
        await self._ensure_unique(tag)
        try:
            async with self.session.begin_nested():
                self.session.add(tag)
        except IntegrityError as exc:
            raise integrity_error_to_app_error(exc, _DUPLICATE_MESSAGES) from exc
        return tag

    @wrap_db_errors("update tag")
    async def update(self, tag: Tag) -> None:
        existing = await self.find_one(tag.id)
        await self._ensure_unique(
            tag,
            exclude_id=tag.id,
            check_slug=tag.slug != existing.slug,
            check_name=tag.name != existing.name,
        )
        try:
            async with self.session.begin_nested():
                await self.session.execute(
                    update(Tag)
                    .where(Tag.id == tag.id)
                    .values(
                        name=tag.name,
                        description=tag.description,
                        slug=tag.slug,
                        updated_at=utcnow(),
                    )
                )
        except IntegrityError as exc:
            raise integrity_error_to_app_error(exc, _DUPLICATE_MESSAGES) from exc

    @wrap_db_errors("delete tag")
    async def delete(self, tag_id: int) -> None:
        async with self.session.begin_nested():
            await self.session.execute(delete(article_tags).where(article_tags.c.tag_id == tag_id))
            result = await self.session.execute(delete(Tag).where(Tag.id == tag_id))
            if result.rowcount == 0:
                raise NotFoundError("Tag")
        logger.debug("Deleted tag %s and its article links", tag_id)
