"""
Service layer for people.

``PersonService`` translates the person operations into MongoDB
calls against the collections it is handed.  It assumes its inputs
were already validated by the endpoint (ids parsed to ``ObjectId``,
bodies checked against the person schemas) and performs exactly one
storage call per operation, so a mutation is never half applied.

Documents are returned JSON-ready: ObjectIds become hex strings and
datetimes ISO-8601 strings.

Relationship ids (``petIds``, ``carId``) are not kept in sync with the
``pets`` and ``cars`` collections.  A pet deleted after being attached
stays listed in ``petIds``; the lookups simply stop finding it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from bson import ObjectId
from fastapi.encoders import jsonable_encoder

from people_api.app.core.db import CARS_COLLECTION, PETS_COLLECTION, Collections
from people_api.app.schemas.person import AverageAge, PersonCreate

logger = logging.getLogger(__name__)

AVERAGE_AGE_PIPELINE: List[Dict[str, Any]] = [
    {"$group": {"_id": "average", "average": {"$avg": "$age"}}},
]


def pets_pipeline(person_id: ObjectId) -> List[Dict[str, Any]]:
    """Pipeline embedding the pets referenced by ``petIds`` as ``pets``."""
    return [
        {"$match": {"_id": person_id}},
        {
            "$lookup": {
                "from": PETS_COLLECTION,
                # A person without pets has no petIds field; $in needs an array.
                "let": {"ids": {"$ifNull": ["$petIds", []]}},
                "pipeline": [
                    {"$match": {"$expr": {"$in": ["$_id", "$$ids"]}}},
                ],
                "as": "pets",
            }
        },
        {"$unset": ["petIds"]},
    ]


def car_pipeline(person_id: ObjectId) -> List[Dict[str, Any]]:
    """Pipeline embedding the car referenced by ``carId`` as ``car``."""
    return [
        {"$match": {"_id": person_id}},
        {
            "$lookup": {
                "from": CARS_COLLECTION,
                "localField": "carId",
                "foreignField": "_id",
                "as": "car",
            }
        },
        {"$unset": ["carId"]},
    ]


def to_json(document: Any) -> Any:
    """Render a document (or list of documents) as JSON-compatible data."""
    return jsonable_encoder(document, custom_encoder={ObjectId: str})


class PersonService:
    """Operations on the ``people`` collection."""

    @classmethod
    async def list_people(cls, collections: Collections) -> List[Dict[str, Any]]:
        cursor = collections.people.find({})
        return to_json(await cursor.to_list())

    @classmethod
    async def create_person(cls, collections: Collections, data: PersonCreate) -> Dict[str, Any]:
        """Insert a new person and return it with its generated ``_id``."""
        document = data.model_dump()
        result = await collections.people.insert_one(document)
        document["_id"] = result.inserted_id
        logger.info("Created person %s", result.inserted_id)
        return to_json(document)

    @classmethod
    async def delete_person(cls, collections: Collections, person_id: ObjectId) -> None:
        """Delete a person.  Deleting an absent id is not an error."""
        result = await collections.people.delete_one({"_id": person_id})
        if result.deleted_count:
            logger.info("Deleted person %s", person_id)
        else:
            logger.info("Delete of person %s matched nothing", person_id)

    @classmethod
    async def update_person(
        cls, collections: Collections, person_id: ObjectId, changes: Dict[str, Any]
    ) -> None:
        """Set the given fields and refresh ``updatedAt``."""
        update = {**changes, "updatedAt": datetime.now(timezone.utc)}
        await collections.people.update_one({"_id": person_id}, {"$set": update})
        logger.info("Updated person %s (%s)", person_id, ", ".join(sorted(changes)) or "no fields")

    @classmethod
    async def find_by_name(cls, collections: Collections, name: str) -> List[Dict[str, Any]]:
        cursor = collections.people.find({"name": name})
        return to_json(await cursor.to_list())

    @classmethod
    async def find_by_age(cls, collections: Collections, age: float) -> List[Dict[str, Any]]:
        cursor = collections.people.find({"age": age})
        return to_json(await cursor.to_list())

    @classmethod
    async def average_age(cls, collections: Collections) -> List[AverageAge]:
        """Mean ``age`` over all people.

        Returns a single ``{"_id": "average", "average": n}`` row, or an
        empty list when the collection is empty.
        """
        cursor = await collections.people.aggregate(AVERAGE_AGE_PIPELINE)
        rows = await cursor.to_list()
        return [AverageAge.model_validate(row) for row in rows]

    @classmethod
    async def add_pet(cls, collections: Collections, person_id: ObjectId, pet_id: ObjectId) -> None:
        """Append ``pet_id`` to the person's ``petIds``.

        Attaching the same pet twice stores it twice.
        """
        await collections.people.update_one({"_id": person_id}, {"$push": {"petIds": pet_id}})
        logger.info("Added pet %s to person %s", pet_id, person_id)

    @classmethod
    async def list_pets(cls, collections: Collections, person_id: ObjectId) -> List[Dict[str, Any]]:
        cursor = await collections.people.aggregate(pets_pipeline(person_id))
        return to_json(await cursor.to_list())

    @classmethod
    async def get_car(cls, collections: Collections, person_id: ObjectId) -> List[Dict[str, Any]]:
        cursor = await collections.people.aggregate(car_pipeline(person_id))
        return to_json(await cursor.to_list())

    @classmethod
    async def attach_car(cls, collections: Collections, person_id: ObjectId, car_id: ObjectId) -> None:
        """Point the person's ``carId`` at ``car_id``, replacing any previous car."""
        await collections.people.update_one({"_id": person_id}, {"$set": {"carId": car_id}})
        logger.info("Attached car %s to person %s", car_id, person_id)
