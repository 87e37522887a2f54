import functools
import logging
import re

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import AppError, InternalError, InvalidPayloadError

logger = logging.getLogger(__name__)


def wrap_db_errors(action: str):
    """
    Decorate a repository coroutine so that any SQLAlchemy error escaping it
    surfaces as ``InternalError("Failed to <action>: ...")``.

    Errors from ``app.exceptions`` pass through untouched, which lets
    decorated methods call each other freely.
    """

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except SQLAlchemyError as exc:
                logger.exception("Database error while trying to %s", action)
                raise InternalError(f"Failed to {action}: {exc}") from exc

        return wrapper

    return decorator


def _violated_constraint(exc: IntegrityError) -> str:
    """
    Name the violated constraint: asyncpg reports it directly, other drivers
    only in the first line of their message (``UNIQUE constraint failed:
    tags.name`` on SQLite).  Detail lines quoting the offending value are
    never looked at.
    """
    cause = getattr(exc.orig, "__cause__", None)
    constraint = getattr(cause, "constraint_name", None) or getattr(exc.orig, "constraint_name", None)
    if constraint:
        return constraint
    lines = str(exc.orig).splitlines()
    return lines[0] if lines else ""


def integrity_error_to_app_error(exc: IntegrityError, messages: dict[str, str]) -> AppError:
    """
    Translate a unique-constraint violation into a payload error.

    *messages* maps column names to the user-facing message.  A column
    matches when the violated constraint names it as ``table.column``
    (SQLite) or ends in ``_column`` (index names such as ``ix_tags_slug``).
    Anything unrecognised becomes an ``InternalError``.
    """
    constraint = _violated_constraint(exc).lower()
    for field, message in messages.items():
        if re.search(rf"[._]{re.escape(field)}\b", constraint):
            return InvalidPayloadError({field: message})
    return InternalError(f"Integrity error: {exc.orig}")


class Repository:
    """Common plumbing shared by the aggregate repositories."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _count(self, stmt: Select) -> int:
        return (await self.session.execute(stmt)).scalar_one()

    async def _count_where(self, model, *criteria) -> int:
        return await self._count(select(func.count()).select_from(model).where(*criteria))

    @staticmethod
    def _like(keyword: str) -> str:
        return f"%{keyword}%"
