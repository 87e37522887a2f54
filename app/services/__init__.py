# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# the business rules for a single domain aggregate:
#
#   article_service   CRUD + publish/unpublish for Article
#   category_service  CRUD + tree navigation for Category
#   tag_service       CRUD + per-article lookup for Tag
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Persistence and structural invariants live in
# ``app.repositories``.
