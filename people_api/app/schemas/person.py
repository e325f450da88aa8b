"""
Pydantic schemas for person payloads.

Person documents are stored as-is in MongoDB and returned as JSON
objects (``_id`` rendered as a hex string), so only request bodies
and the small acknowledgement responses get dedicated models here.
Acknowledgements use camelCase keys on the wire
(``deletedPersonId``, ``newCarId``...).
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic.alias_generators import to_camel

MIN_AGE = 1
MAX_AGE = 150

# Body keys a partial update may carry.
UPDATABLE_FIELDS = ("name", "lastname", "age")


def _reject_bool(value: Any) -> Any:
    # bool is an int subclass and would otherwise pass as an age.
    if isinstance(value, bool):
        raise ValueError("Input should be a valid number")
    return value


class PersonCreate(BaseModel):
    """Schema for creating a person."""

    name: StrictStr = Field(..., examples=["Ann"])
    lastname: StrictStr = Field(..., examples=["Lee"])
    age: float = Field(..., ge=MIN_AGE, le=MAX_AGE, allow_inf_nan=False, examples=[30])

    @field_validator("age", mode="before")
    @classmethod
    def age_is_number(cls, v: Any) -> Any:
        return _reject_bool(v)


class PersonUpdate(BaseModel):
    """Schema for partially updating a person.

    Every field is optional but, when present, must satisfy the same
    constraints as on creation.  Keys outside ``UPDATABLE_FIELDS``
    reject the whole payload.
    """

    model_config = ConfigDict(extra="forbid")

    name: Optional[StrictStr] = None
    lastname: Optional[StrictStr] = None
    age: Optional[float] = Field(None, ge=MIN_AGE, le=MAX_AGE, allow_inf_nan=False)

    @field_validator("name", "lastname", "age", mode="before")
    @classmethod
    def not_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("Value must not be null")
        return _reject_bool(v)

    def changes(self) -> dict:
        """Return only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PersonDeleted(_CamelModel):
    deleted_person_id: str


class PersonUpdated(_CamelModel):
    updated_person_id: str


class PetAdded(_CamelModel):
    added_pet_id: str
    updated_person_id: str


class CarAttached(_CamelModel):
    updated_person_id: str
    new_car_id: str


class AverageAge(BaseModel):
    """One row of the average-age aggregation."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field("average", alias="_id")
    # ``$avg`` yields null when no document has a numeric age.
    average: Optional[float] = None
