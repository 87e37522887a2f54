"""
Direct service-layer tests: slug policy, id resolution and publishing
rules, called with a database session and no HTTP in between.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import BadRequestError, InvalidPayloadError, NotFoundError
from app.schemas import ArticleDTO, ArticleQuery, CategoryDTO, CategoryQuery, TagDTO
from app.services import article_service, category_service, tag_service


# ---------------------------------------------------------------------------
# article_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_articles_empty(db_session: AsyncSession):
    articles, total = await article_service.get_articles(db_session, ArticleQuery())
    assert articles == []
    assert total == 0


@pytest.mark.asyncio
async def test_create_article_derives_slug(db_session: AsyncSession):
    article = await article_service.create_article(
        db_session, ArticleDTO(title="Hello World", content="Body")
    )
    assert article.slug == "hello-world"
    assert not article.is_published


@pytest.mark.asyncio
async def test_create_article_with_duplicate_title_is_rejected(db_session: AsyncSession):
    await article_service.create_article(db_session, ArticleDTO(title="Hello World", content="A"))

    with pytest.raises(InvalidPayloadError) as exc_info:
        await article_service.create_article(db_session, ArticleDTO(title="Hello World", content="B"))

    assert exc_info.value.errors == {"slug": "Slug already exists"}


@pytest.mark.asyncio
async def test_create_article_explicit_slug_wins(db_session: AsyncSession):
    article = await article_service.create_article(
        db_session, ArticleDTO(title="Hello World", content="Body", slug="custom-slug")
    )
    assert article.slug == "custom-slug"
    assert (await article_service.get_article_by_slug(db_session, "custom-slug")).id == article.id


@pytest.mark.asyncio
async def test_create_article_title_without_slug_characters(db_session: AsyncSession):
    with pytest.raises(InvalidPayloadError) as exc_info:
        await article_service.create_article(db_session, ArticleDTO(title="!!!", content="Body"))
    assert "slug" in exc_info.value.errors


@pytest.mark.asyncio
async def test_create_article_with_unknown_category_is_invalid_payload(db_session: AsyncSession):
    with pytest.raises(InvalidPayloadError) as exc_info:
        await article_service.create_article(
            db_session, ArticleDTO(title="Orphan", content="Body", category_ids=[99])
        )
    assert exc_info.value.errors == {"categoryIds": "Invalid category ID"}


@pytest.mark.asyncio
async def test_create_article_with_unknown_tag_is_invalid_payload(db_session: AsyncSession):
    with pytest.raises(InvalidPayloadError) as exc_info:
        await article_service.create_article(
            db_session, ArticleDTO(title="Orphan", content="Body", tag_ids=[99])
        )
    assert exc_info.value.errors == {"tagIds": "Invalid tag ID"}


@pytest.mark.asyncio
async def test_create_article_dedupes_associations(db_session: AsyncSession):
    cat = await category_service.create_category(db_session, CategoryDTO(name="News"))
    tag = await tag_service.create_tag(db_session, TagDTO(name="hot"))

    article = await article_service.create_article(
        db_session,
        ArticleDTO(title="Linked", content="Body", category_ids=[cat.id, cat.id], tag_ids=[tag.id, tag.id]),
    )

    assert [c.id for c in article.categories] == [cat.id]
    assert [t.id for t in article.tags] == [tag.id]


@pytest.mark.asyncio
async def test_create_article_with_future_published_at_is_rejected(db_session: AsyncSession):
    tomorrow = datetime.now(timezone.utc) + timedelta(days=1)
    with pytest.raises(InvalidPayloadError) as exc_info:
        await article_service.create_article(
            db_session, ArticleDTO(title="Later", content="Body", published_at=tomorrow)
        )
    assert "publishedAt" in exc_info.value.errors


@pytest.mark.asyncio
async def test_update_regenerates_slug_when_title_changes(db_session: AsyncSession):
    article = await article_service.create_article(db_session, ArticleDTO(title="Old Title", content="Body"))

    updated = await article_service.update_article(
        db_session, article.id, ArticleDTO(title="New Title", content="Body")
    )

    assert updated.slug == "new-title"


@pytest.mark.asyncio
async def test_update_keeps_slug_when_title_unchanged(db_session: AsyncSession):
    article = await article_service.create_article(
        db_session, ArticleDTO(title="Same Title", content="Body", slug="kept")
    )

    updated = await article_service.update_article(
        db_session, article.id, ArticleDTO(title="Same Title", content="Changed")
    )

    assert updated.slug == "kept"
    assert updated.content == "Changed"


@pytest.mark.asyncio
async def test_update_keeps_published_at_when_omitted(db_session: AsyncSession):
    article = await article_service.create_article(db_session, ArticleDTO(title="Live", content="Body"))
    await article_service.publish_article(db_session, article.id)

    updated = await article_service.update_article(
        db_session, article.id, ArticleDTO(title="Live", content="Edited")
    )

    assert updated.is_published


@pytest.mark.asyncio
async def test_update_unknown_article_is_not_found(db_session: AsyncSession):
    with pytest.raises(NotFoundError):
        await article_service.update_article(db_session, 5, ArticleDTO(title="x", content="y"))


@pytest.mark.asyncio
async def test_publish_blank_article_is_refused(db_session: AsyncSession):
    article = await article_service.create_article(db_session, ArticleDTO(title="Draft", content="   "))

    with pytest.raises(BadRequestError) as exc_info:
        await article_service.publish_article(db_session, article.id)

    assert exc_info.value.message == "Cannot publish an article without content"


@pytest.mark.asyncio
async def test_publish_then_unpublish(db_session: AsyncSession):
    article = await article_service.create_article(db_session, ArticleDTO(title="Flip", content="Body"))

    await article_service.publish_article(db_session, article.id)
    assert (await article_service.get_article(db_session, article.id)).is_published

    await article_service.unpublish_article(db_session, article.id)
    assert not (await article_service.get_article(db_session, article.id)).is_published


@pytest.mark.asyncio
async def test_unpublish_unknown_article_is_not_found(db_session: AsyncSession):
    with pytest.raises(NotFoundError):
        await article_service.unpublish_article(db_session, 1)


@pytest.mark.asyncio
async def test_delete_article(db_session: AsyncSession):
    article = await article_service.create_article(db_session, ArticleDTO(title="Bye", content="Body"))
    await article_service.delete_article(db_session, article.id)
    with pytest.raises(NotFoundError):
        await article_service.get_article(db_session, article.id)


# ---------------------------------------------------------------------------
# category_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_category_requires_name(db_session: AsyncSession):
    with pytest.raises(InvalidPayloadError) as exc_info:
        await category_service.create_category(db_session, CategoryDTO(name="  "))
    assert exc_info.value.errors == {"name": "Category name is required"}


@pytest.mark.asyncio
async def test_category_tree_through_service(db_session: AsyncSession):
    root = await category_service.create_category(db_session, CategoryDTO(name="Programming"))
    child = await category_service.create_category(
        db_session, CategoryDTO(name="Python Tips", parent_id=root.id)
    )

    assert child.slug == "python-tips"
    assert [c.id for c in (await category_service.get_category(db_session, root.id)).children] == [child.id]
    assert [c.id for c in await category_service.get_children(db_session, root.id)] == [child.id]
    assert [c.id for c in await category_service.get_hierarchy(db_session, child.id)] == [root.id, child.id]

    roots, total = await category_service.get_categories(db_session, CategoryQuery(parent_id=0))
    assert total == 1
    assert roots[0].id == root.id


@pytest.mark.asyncio
async def test_update_category_without_parent_moves_to_root(db_session: AsyncSession):
    root = await category_service.create_category(db_session, CategoryDTO(name="Root"))
    child = await category_service.create_category(db_session, CategoryDTO(name="Child", parent_id=root.id))

    updated = await category_service.update_category(db_session, child.id, CategoryDTO(name="Child"))

    assert updated.parent_id is None
    assert updated.slug == "child"


@pytest.mark.asyncio
async def test_update_category_rename_regenerates_slug(db_session: AsyncSession):
    category = await category_service.create_category(db_session, CategoryDTO(name="Old Name"))
    updated = await category_service.update_category(db_session, category.id, CategoryDTO(name="New Name"))
    assert updated.slug == "new-name"
    assert (await category_service.get_category_by_slug(db_session, "new-name")).id == category.id


@pytest.mark.asyncio
async def test_delete_category(db_session: AsyncSession):
    category = await category_service.create_category(db_session, CategoryDTO(name="Temp"))
    await category_service.delete_category(db_session, category.id)
    with pytest.raises(NotFoundError):
        await category_service.get_category(db_session, category.id)


# ---------------------------------------------------------------------------
# tag_service
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_tag_requires_name(db_session: AsyncSession):
    with pytest.raises(InvalidPayloadError) as exc_info:
        await tag_service.create_tag(db_session, TagDTO(name=""))
    assert exc_info.value.errors == {"name": "Tag name is required"}


@pytest.mark.asyncio
async def test_update_tag_rename(db_session: AsyncSession):
    tag = await tag_service.create_tag(db_session, TagDTO(name="Machine Learning"))
    assert tag.slug == "machine-learning"

    updated = await tag_service.update_tag(db_session, tag.id, TagDTO(name="Deep Learning"))

    assert updated.name == "Deep Learning"
    assert updated.slug == "deep-learning"


@pytest.mark.asyncio
async def test_tags_by_article(db_session: AsyncSession):
    b = await tag_service.create_tag(db_session, TagDTO(name="beta"))
    a = await tag_service.create_tag(db_session, TagDTO(name="alpha"))
    article = await article_service.create_article(
        db_session, ArticleDTO(title="Tagged", content="Body", tag_ids=[b.id, a.id])
    )

    tags = await tag_service.get_tags_by_article(db_session, article.id)

    assert [t.name for t in tags] == ["alpha", "beta"]


@pytest.mark.asyncio
async def test_tags_by_unknown_article_is_not_found(db_session: AsyncSession):
    with pytest.raises(NotFoundError) as exc_info:
        await tag_service.get_tags_by_article(db_session, 77)
    assert exc_info.value.message == "Article not found"
