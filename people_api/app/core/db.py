"""
MongoDB integration.

This module owns the driver client lifecycle (``create_client``),
the one-off bootstrap run at application start (``init_db``) and the
FastAPI dependencies that hand each request its collection accessor.

The accessor, :class:`Collections`, is built per request from the
database stored on ``app.state``.  Route handlers never reach for a
global client, so tests can swap in their own collections through
``app.dependency_overrides[get_collections]``.
"""

import logging
from dataclasses import dataclass
from typing import Any

from fastapi import Request
from pymongo import ASCENDING, AsyncMongoClient
from pymongo.errors import PyMongoError

from .config import settings

logger = logging.getLogger(__name__)

PEOPLE_COLLECTION = "people"
PETS_COLLECTION = "pets"
CARS_COLLECTION = "cars"


@dataclass(frozen=True)
class Collections:
    """Handles to the collections a person request may touch.

    ``people`` is the collection the endpoints operate on; ``pets``
    and ``cars`` are only read, to check that referenced documents
    exist.  Cross-collection joins run as ``$lookup`` stages on
    ``people`` and refer to the peers by name.
    """

    people: Any
    pets: Any
    cars: Any

    @classmethod
    def from_database(cls, database: Any) -> "Collections":
        return cls(
            people=database[PEOPLE_COLLECTION],
            pets=database[PETS_COLLECTION],
            cars=database[CARS_COLLECTION],
        )


def create_client() -> AsyncMongoClient:
    """Create the asynchronous driver client.

    The client connects lazily, so this never blocks or fails on an
    unreachable server; the first operation does.
    """
    return AsyncMongoClient(
        settings.mongodb_url,
        serverSelectionTimeoutMS=settings.mongodb_timeout_ms,
        tz_aware=True,
    )


async def init_db(database: Any) -> None:
    """Create the indexes backing the lookup endpoints.

    Index creation is idempotent.  A server that cannot be reached is
    logged and tolerated: the application still starts and individual
    requests report the storage failure.
    """
    people = database[PEOPLE_COLLECTION]
    try:
        await people.create_index([("name", ASCENDING)])
        await people.create_index([("age", ASCENDING)])
    except PyMongoError:
        logger.warning("Could not create indexes on %s", PEOPLE_COLLECTION, exc_info=True)
        return
    logger.info("Indexes ensured on %s.%s", database.name, PEOPLE_COLLECTION)


async def ping(database: Any) -> bool:
    """Return ``True`` if the server answers a ``ping`` command."""
    try:
        await database.command("ping")
    except PyMongoError:
        logger.warning("MongoDB ping failed", exc_info=True)
        return False
    return True


def get_database(request: Request) -> Any:
    """FastAPI dependency returning the application's database handle."""
    return request.app.state.database


def get_collections(request: Request) -> Collections:
    """FastAPI dependency returning the per-request collection accessor."""
    return Collections.from_database(get_database(request))
