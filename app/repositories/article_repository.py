"""
Article repository: persistence for the Article aggregate.

Design notes
------------
- ``find_one`` / ``find_by_slug`` always eager-load categories and tags;
  ``find_all`` eager-loads them for the returned page only (one
  ``selectinload`` query per collection, never one per article).
- Reads use ``populate_existing`` so an article already present in the
  session's identity map is refreshed, associations included, after a
  write issued through a Core statement.
- Association sets are replaced with explicit DELETE + INSERT statements
  on the association tables rather than through the ORM collection, so the
  result does not depend on which collections happen to be loaded.
"""
import logging
from datetime import datetime

from sqlalchemy import Table, delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from app.dates import RFC3339_ERROR, parse_rfc3339
from app.exceptions import InvalidPayloadError, NotFoundError
from app.models import Article, article_categories, article_tags, utcnow
from app.repositories.base import (
    Repository,
    integrity_error_to_app_error,
    wrap_db_errors,
)
from app.schemas import ArticleQuery

logger = logging.getLogger(__name__)

_DUPLICATE_MESSAGES = {"slug": "Slug already exists"}


class ArticleRepository(Repository):

    def _select(self):
        return (
            select(Article)
            .options(selectinload(Article.categories), selectinload(Article.tags))
            .execution_options(populate_existing=True)
        )

    @staticmethod
    def _apply_filters(stmt, query: ArticleQuery):
        if query.keyword:
            pattern = Repository._like(query.keyword)
            stmt = stmt.where(or_(Article.title.like(pattern), Article.content.like(pattern)))

        if query.category_id:
            stmt = stmt.join(
                article_categories, article_categories.c.article_id == Article.id
            ).where(article_categories.c.category_id == query.category_id)

        if query.tag_id:
            stmt = stmt.join(
                article_tags, article_tags.c.article_id == Article.id
            ).where(article_tags.c.tag_id == query.tag_id)

        if query.is_published is True:
            stmt = stmt.where(Article.published_at.is_not(None))
        elif query.is_published is False:
            stmt = stmt.where(Article.published_at.is_(None))

        return stmt

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @wrap_db_errors("find article")
    async def find_one(self, article_id: int) -> Article:
        result = await self.session.execute(self._select().where(Article.id == article_id))
        article = result.scalar_one_or_none()
        if article is None:
            raise NotFoundError("Article")
        return article

    @wrap_db_errors("find article by slug")
    async def find_by_slug(self, slug: str) -> Article:
        result = await self.session.execute(self._select().where(Article.slug == slug))
        article = result.scalar_one_or_none()
        if article is None:
            raise NotFoundError("Article")
        return article

    @wrap_db_errors("find articles")
    async def find_all(self, query: ArticleQuery) -> tuple[list[Article], int]:
        """
        Return one page of articles matching *query* and the total number
        of matches, newest first.
        """
        total = await self._count(
            self._apply_filters(select(func.count()).select_from(Article), query)
        )

        page_q = (
            self._apply_filters(self._select(), query)
            .order_by(Article.created_at.desc(), Article.id.desc())
            .limit(query.pagination.effective_limit)
            .offset(query.pagination.offset)
        )
        result = await self.session.execute(page_q)
        return list(result.scalars().all()), total

    @wrap_db_errors("count articles by slug")
    async def count_by_slug(self, slug: str, exclude_id: int | None = None) -> int:
        criteria = [Article.slug == slug]
        if exclude_id is not None:
            criteria.append(Article.id != exclude_id)
        return await self._count_where(Article, *criteria)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def _ensure_slug_available(self, slug: str, exclude_id: int | None = None) -> None:
        if await self.count_by_slug(slug, exclude_id) > 0:
            logger.debug("Rejected duplicate article slug %r", slug)
            raise InvalidPayloadError({"slug": "Slug already exists"})

    async def _replace_links(self, table: Table, column: str, article_id: int, ids: list[int]) -> None:
        await self.session.execute(delete(table).where(table.c.article_id == article_id))
        await self.session.execute(
            insert(table),
            [{"article_id": article_id, column: linked_id} for linked_id in dict.fromkeys(ids)],
        )

    @wrap_db_errors("create article")
    async def create(self, article: Article) -> Article:
        """
        Insert *article* together with the categories and tags attached to
        it.  The slug must not be used by any other article.
        """
        await self._ensure_slug_available(article.slug)
        try:
            async with self.session.begin_nested():
                self.session.add(article)
        except IntegrityError as exc:
            raise integrity_error_to_app_error(exc, _DUPLICATE_MESSAGES) from exc
        return article

    @wrap_db_errors("update article")
    async def update(self, article: Article) -> None:
        """
        Write the scalar fields of *article* (a transient value carrying the
        target ``id``) to the stored row.

        A non-empty ``categories`` or ``tags`` list replaces the stored set;
        an empty list leaves it untouched, so associations cannot be cleared
        through this method.
        """
        stored_slug = await self.session.scalar(
            select(Article.slug).where(Article.id == article.id)
        )
        if stored_slug is None:
            raise NotFoundError("Article")

        if article.slug != stored_slug:
            await self._ensure_slug_available(article.slug, exclude_id=article.id)

        try:
            async with self.session.begin_nested():
                await self.session.execute(
                    update(Article)
                    .where(Article.id == article.id)
                    .values(
                        title=article.title,
                        content=article.content,
                        slug=article.slug,
                        published_at=article.published_at,
                        updated_at=utcnow(),
                    )
                )
                if article.categories:
                    await self._replace_links(
                        article_categories, "category_id", article.id,
                        [c.id for c in article.categories],
                    )
                if article.tags:
                    await self._replace_links(
                        article_tags, "tag_id", article.id, [t.id for t in article.tags]
                    )
        except IntegrityError as exc:
            raise integrity_error_to_app_error(exc, _DUPLICATE_MESSAGES) from exc

    @wrap_db_errors("delete article")
    async def delete(self, article_id: int) -> None:
        async with self.session.begin_nested():
            await self.session.execute(
                delete(article_categories).where(article_categories.c.article_id == article_id)
            )
            await self.session.execute(
                delete(article_tags).where(article_tags.c.article_id == article_id)
            )
            result = await self.session.execute(delete(Article).where(Article.id == article_id))
            if result.rowcount == 0:
                raise NotFoundError("Article")

    async def _set_published_at(self, article_id: int, value: datetime | None) -> None:
        result = await self.session.execute(
            update(Article)
            .where(Article.id == article_id)
            .values(published_at=value, updated_at=utcnow())
        )
        if result.rowcount == 0:
            raise NotFoundError("Article")

    @wrap_db_errors("publish article")
    async def publish(self, article_id: int, published_at: str | None = None) -> None:
        """
        Mark the article as published at *published_at* (an RFC 3339
        string), or now when omitted.
        """
        if published_at is None:
            timestamp = utcnow()
        else:
            try:
                timestamp = parse_rfc3339(published_at)
            except ValueError as exc:
                raise InvalidPayloadError({"publishedAt": RFC3339_ERROR}) from exc
        await self._set_published_at(article_id, timestamp)

    @wrap_db_errors("unpublish article")
    async def unpublish(self, article_id: int) -> None:
        await self._set_published_at(article_id, None)
