# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared plumbing for the domain services.

ServiceContext bundles the collaborators every service needs (database
session, school cache, notification sink) and is passed to each service's
constructor. Services publish through ``ctx.notify`` only after commit.

service_operation wraps a public service coroutine so that:
- AppError subclasses propagate unchanged after a rollback
- any other exception is rolled back and re-raised as DatabaseError with
  the operation name, the identifiers it was called with and the original
  message; the original exception stays reachable as ``__cause__``
"""

import functools
import inspect
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, NamedTuple, ParamSpec, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.errors import AppError, DatabaseError, InvalidInputError
from src.infrastructure.cache.school_cache import SchoolCache
from src.infrastructure.database.store import EntityStore
from src.infrastructure.events.sink import NotificationSink, NullNotificationSink

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

MAX_PAGE_SIZE = 100


@dataclass
class ServiceContext:
    """Dependencies shared by the domain services for one unit of work.

    Attributes:
        db: Async database session.
        cache: School document cache.
        notifier: Fire-and-forget notification sink.
        store: Entity store bound to db.
    """

    db: AsyncSession
    cache: SchoolCache = field(default_factory=lambda: SchoolCache(None))
    notifier: NotificationSink = field(default_factory=NullNotificationSink)
    store: EntityStore = field(init=False)

    def __post_init__(self) -> None:
        self.store = EntityStore(self.db)

    async def notify(self, event_type: str, payload: dict[str, Any]) -> None:
        """Publish a notification; a failing sink is logged, never raised."""
        try:
            await self.notifier.publish(event_type, payload)
        except Exception as e:
            logger.warning("Failed to publish %s: %s", event_type, e)


class Page(NamedTuple):
    """One page of a listing."""

    items: list[Any]
    pagination: dict[str, int]


def normalize_paging(page: int, limit: int) -> tuple[int, int, int]:
    """Validate paging parameters.

    Returns:
        Tuple of (page, limit, offset).

    Raises:
        InvalidInputError: If page < 1 or limit is outside 1..MAX_PAGE_SIZE.
    """
    if page < 1 or limit < 1 or limit > MAX_PAGE_SIZE:
        raise InvalidInputError(
            "Invalid pagination parameters",
            details={"page": page, "limit": limit, "max_limit": MAX_PAGE_SIZE},
        )
    return page, limit, (page - 1) * limit


def build_pagination(page: int, limit: int, total: int) -> dict[str, int]:
    """Pagination block returned with every listing."""
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def _relevant_ids(
    signature: inspect.Signature,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> dict[str, Any]:
    try:
        bound = signature.bind_partial(*args, **kwargs)
    except TypeError:
        return {}
    return {
        name: value
        for name, value in bound.arguments.items()
        if name.endswith("_id") and isinstance(value, (str, type(None)))
    }


def service_operation(
    operation: str,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Mark a service coroutine as one rollback-on-failure unit of work.

    The decorated method's instance must expose ``_db``.

    Args:
        operation: Name reported in DatabaseError details.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            db: AsyncSession = args[0]._db  # type: ignore[attr-defined]
            try:
                return await func(*args, **kwargs)
            except AppError:
                await db.rollback()
                raise
            except Exception as e:
                await db.rollback()
                ids = _relevant_ids(signature, args, kwargs)
                logger.error(
                    "Operation %s failed (%s): %s",
                    operation,
                    ", ".join(f"{k}={v}" for k, v in ids.items()) or "no ids",
                    e,
                    exc_info=True,
                )
                raise DatabaseError(
                    f"Failed to {operation.replace('_', ' ')}",
                    details={"operation": operation, **ids, "original_message": str(e)},
                    original_error=e,
                ) from e

        return wrapper

    return decorator
