# Repositories package.
#
# One class per aggregate root, each bound to the request's AsyncSession:
#
#   ArticleRepository   articles plus their category/tag association rows
#   CategoryRepository  the self-referencing category tree
#   TagRepository       tags
#
# Repositories raise the errors from ``app.exceptions`` directly and wrap
# any other SQLAlchemy failure into ``InternalError``.  They flush but never
# commit; multi-statement writes run inside a SAVEPOINT so they apply or
# roll back as one unit within the request transaction.
from app.repositories.article_repository import ArticleRepository
from app.repositories.category_repository import CategoryRepository
from app.repositories.tag_repository import TagRepository

__all__ = ["ArticleRepository", "CategoryRepository", "TagRepository"]
