"""Seed the content database with a category tree, tags and articles.

Everything is created through the service layer so slugs, parent checks
and association rules apply exactly as they do for API clients.
"""
import argparse
import asyncio
import random
import time

from app.database import Base, async_session, engine
from app.schemas import ArticleDTO, CategoryDTO, TagDTO
from app.services import article_service, category_service, tag_service

# parent name -> child names
CATEGORY_TREE = {
    "Programming": ["Python", "Go", "TypeScript"],
    "Infrastructure": ["Databases", "Containers", "Networking"],
    "Product": ["Design", "Analytics"],
}

TAGS = ["performance", "security", "testing", "tutorial", "architecture",
        "postgresql", "redis", "docker", "kubernetes", "observability"]


async def seed(num_articles: int) -> None:
    print(f"Seeding: {sum(1 + len(c) for c in CATEGORY_TREE.values())} categories, "
          f"{len(TAGS)} tags, {num_articles} articles")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        leaf_ids: list[int] = []
        for parent_name, children in CATEGORY_TREE.items():
            parent = await category_service.create_category(
                session, CategoryDTO(name=parent_name, description=f"All about {parent_name.lower()}")
            )
            for child_name in children:
                child = await category_service.create_category(
                    session, CategoryDTO(name=child_name, parent_id=parent.id)
                )
                leaf_ids.append(child.id)
        print(f"  Created category tree with {len(leaf_ids)} leaves")

        tag_ids = []
        for name in TAGS:
            tag = await tag_service.create_tag(session, TagDTO(name=name))
            tag_ids.append(tag.id)
        print(f"  Created {len(tag_ids)} tags")

        for i in range(num_articles):
            article = await article_service.create_article(
                session,
                ArticleDTO(
                    title=f"Article {i}: notes on {random.choice(TAGS)}",
                    content=f"<p>This is the body of article {i}.</p>" * 5,
                    category_ids=random.sample(leaf_ids, k=random.randint(1, 2)),
                    tag_ids=random.sample(tag_ids, k=random.randint(1, 4)),
                ),
            )
            # Roughly 80% of the articles go live.
            if random.random() < 0.8:
                await article_service.publish_article(session, article.id)
        print(f"  Created {num_articles} articles")

        await session.commit()

    print(f"\nSeeding complete in {time.perf_counter() - start:.1f}s")


def main():
    parser = argparse.ArgumentParser(description="Seed the content database")
    parser.add_argument("--articles", type=int, default=50, help="Number of articles to create")
    args = parser.parse_args()
    asyncio.run(seed(args.articles))


if __name__ == "__main__":
    main()
