"""
Person endpoints for API v1.

These routes expose CRUD operations on the ``people`` collection plus
the relationship queries joining people to their pets and car.  Every
route validates its whole input first (see ``core.validation``) and
only then touches storage; a rejected request answers HTTP 400 with
the full list of failed checks and changes nothing.

Pets and cars are never created here.  Attaching one only checks that
the referenced document exists at that moment.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Path

from people_api.app.core.db import Collections, get_collections
from people_api.app.core.validation import RequestValidator
from people_api.app.schemas.error import ErrorResponse, ValidationErrorResponse
from people_api.app.schemas.person import (
    AverageAge,
    CarAttached,
    PersonCreate,
    PersonDeleted,
    PersonUpdate,
    PersonUpdated,
    PetAdded,
)
from people_api.app.services.person_service import PersonService

router = APIRouter(
    responses={
        400: {"model": ValidationErrorResponse},
        500: {"model": ErrorResponse},
    }
)


@router.get("/", response_model=List[Dict[str, Any]])
async def list_people(collections: Collections = Depends(get_collections)) -> List[Dict[str, Any]]:
    """Return every person document."""
    return await PersonService.list_people(collections)


@router.post("/", response_model=Dict[str, Any])
async def create_person(
    payload: Any = Body(None, examples=[{"name": "Ann", "lastname": "Lee", "age": 30}]),
    collections: Collections = Depends(get_collections),
) -> Dict[str, Any]:
    """Create a person from ``name``, ``lastname`` and ``age``.

    Returns the stored document including its generated ``_id``.
    """
    checks = RequestValidator()
    data = checks.body(PersonCreate, payload)
    checks.raise_if_failed()
    return await PersonService.create_person(collections, data)


@router.delete("/person/{id}", response_model=PersonDeleted)
async def delete_person(
    person_ref: str = Path(alias="id"),
    collections: Collections = Depends(get_collections),
) -> PersonDeleted:
    """Delete a person.

    Only the id format is checked: deleting an id that matches no
    document succeeds, so the call is idempotent.
    """
    checks = RequestValidator()
    person_id = checks.object_id("id", person_ref)
    checks.raise_if_failed()
    await PersonService.delete_person(collections, person_id)
    return PersonDeleted(deleted_person_id=person_ref)


@router.patch("/person/{id}", response_model=PersonUpdated)
async def update_person(
    person_ref: str = Path(alias="id"),
    payload: Any = Body(None, examples=[{"age": 31}]),
    collections: Collections = Depends(get_collections),
) -> PersonUpdated:
    """Update some of ``name``, ``lastname`` and ``age``.

    Any other key in the body rejects the request.  ``updatedAt`` is
    refreshed on every successful call.
    """
    checks = RequestValidator()
    person_id = await checks.existing_id("id", person_ref, collections.people, "Person")
    data = checks.body(PersonUpdate, payload)
    checks.raise_if_failed()
    await PersonService.update_person(collections, person_id, data.changes())
    return PersonUpdated(updated_person_id=person_ref)


@router.get("/name/{name}", response_model=List[Dict[str, Any]])
async def find_by_name(name: str, collections: Collections = Depends(get_collections)) -> List[Dict[str, Any]]:
    """Return the people whose name matches exactly."""
    return await PersonService.find_by_name(collections, name)


@router.get("/age/{age}", response_model=List[Dict[str, Any]])
async def find_by_age(age: str, collections: Collections = Depends(get_collections)) -> List[Dict[str, Any]]:
    """Return the people of exactly ``age`` years."""
    checks = RequestValidator()
    value = checks.age("age", age)
    checks.raise_if_failed()
    return await PersonService.find_by_age(collections, value)


@router.get("/average/age", response_model=List[AverageAge])
async def average_age(collections: Collections = Depends(get_collections)) -> List[AverageAge]:
    """Return the mean age of all people."""
    return await PersonService.average_age(collections)


@router.post("/person/{id}/pet/{petId}", response_model=PetAdded)
async def add_pet(
    person_ref: str = Path(alias="id"),
    pet_ref: str = Path(alias="petId"),
    collections: Collections = Depends(get_collections),
) -> PetAdded:
    """Append an existing pet to the person's ``petIds``."""
    checks = RequestValidator()
    person_id = await checks.existing_id("id", person_ref, collections.people, "Person")
    pet_id = await checks.existing_id("petId", pet_ref, collections.pets, "Pet")
    checks.raise_if_failed()
    await PersonService.add_pet(collections, person_id, pet_id)
    return PetAdded(added_pet_id=pet_ref, updated_person_id=person_ref)


@router.get("/person/{id}/pets", response_model=List[Dict[str, Any]])
async def list_pets(
    person_ref: str = Path(alias="id"),
    collections: Collections = Depends(get_collections),
) -> List[Dict[str, Any]]:
    """Return the person with its pets embedded as ``pets``."""
    checks = RequestValidator()
    person_id = await checks.existing_id("id", person_ref, collections.people, "Person")
    checks.raise_if_failed()
    return await PersonService.list_pets(collections, person_id)


@router.get("/person/{id}/car", response_model=List[Dict[str, Any]])
async def get_car(
    person_ref: str = Path(alias="id"),
    collections: Collections = Depends(get_collections),
) -> List[Dict[str, Any]]:
    """Return the person with its car embedded as ``car``."""
    checks = RequestValidator()
    person_id = await checks.existing_id("id", person_ref, collections.people, "Person")
    checks.raise_if_failed()
    return await PersonService.get_car(collections, person_id)


@router.post("/person/{id}/car/{carId}", response_model=CarAttached)
async def attach_car(
    person_ref: str = Path(alias="id"),
    car_ref: str = Path(alias="carId"),
    collections: Collections = Depends(get_collections),
) -> CarAttached:
    """Set the person's car, replacing any previous one."""
    checks = RequestValidator()
    person_id = await checks.existing_id("id", person_ref, collections.people, "Person")
    car_id = await checks.existing_id("carId", car_ref, collections.cars, "Car")
    checks.raise_if_failed()
    await PersonService.attach_car(collections, person_id, car_id)
    return CarAttached(updated_person_id=person_ref, new_car_id=car_ref)
