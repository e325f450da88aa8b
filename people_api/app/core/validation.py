"""
Request validation layer.

Handlers build a :class:`RequestValidator`, run their checks in
order, then call :meth:`RequestValidator.raise_if_failed` before the
first write.  Checks never stop at the first failure: every violated
constraint ends up in the error list so the client sees them all in
one response.  The error handler in ``core.errors`` turns
:class:`RequestValidationFailed` into an HTTP 400.

Identifier checks are parse-or-fail: they return a typed
``ObjectId`` on success and ``None`` (plus a recorded failure)
otherwise.  A handler only uses the returned values once
``raise_if_failed`` has passed.
"""

import math
import re
from typing import Any, Iterable, List, Optional, Type, TypeVar

from bson import ObjectId
from pydantic import BaseModel, ValidationError

from people_api.app.schemas.error import FieldError
from people_api.app.schemas.person import MAX_AGE, MIN_AGE

ModelT = TypeVar("ModelT", bound=BaseModel)

# Plain decimal notation, optionally with an exponent. float() alone would
# also take Python-only forms such as "1_0".
_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")

_MESSAGES = {
    "missing": "Missing param",
    "extra_forbidden": "Field is not allowed",
}


class RequestValidationFailed(Exception):
    """Raised when one or more request checks failed."""

    def __init__(self, errors: List[FieldError]) -> None:
        super().__init__(f"{len(errors)} validation error(s)")
        self.errors = errors


def field_errors_from(errors: Iterable[dict], location: Optional[str] = None) -> List[FieldError]:
    """Convert pydantic/FastAPI error dicts into :class:`FieldError` items.

    When ``location`` is omitted the first element of each error's
    ``loc`` is taken as the location (FastAPI prefixes ``body``,
    ``path``, ``query``...).
    """
    result: List[FieldError] = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        where = location
        if where is None:
            where = loc.pop(0) if loc else "body"
        value = None if err.get("type") == "missing" else err.get("input")
        if isinstance(value, (bytes, bytearray)):
            # Raw non-JSON bodies; they need not be valid UTF-8.
            value = bytes(value).decode("utf-8", errors="replace")
        elif isinstance(value, float) and not math.isfinite(value):
            # NaN/Infinity cannot be rendered in a JSON response.
            value = str(value)
        result.append(
            FieldError(
                field=".".join(loc) or where,
                message=_MESSAGES.get(err.get("type"), err.get("msg", "Invalid value")),
                location=where,
                value=value,
            )
        )
    return result


class RequestValidator:
    """Collects failures from an ordered sequence of request checks."""

    def __init__(self) -> None:
        self.errors: List[FieldError] = []

    def fail(self, field: str, message: str, location: str = "path", value: Any = None) -> None:
        self.errors.append(FieldError(field=field, message=message, location=location, value=value))

    def object_id(self, field: str, raw: str, location: str = "path") -> Optional[ObjectId]:
        """Parse ``raw`` as an ObjectId, recording a failure if it is malformed."""
        if not ObjectId.is_valid(raw):
            self.fail(field, "Invalid identifier", location, raw)
            return None
        return ObjectId(raw)

    async def existing_id(
        self, field: str, raw: str, collection: Any, label: str
    ) -> Optional[ObjectId]:
        """Parse ``raw`` and check that ``collection`` holds a document with that id.

        Storage errors raised by the lookup propagate unchanged.
        """
        oid = self.object_id(field, raw)
        if oid is None:
            return None
        if await collection.find_one({"_id": oid}, projection={"_id": 1}) is None:
            self.fail(field, f"{label} not found", "path", raw)
            return None
        return oid

    def age(self, field: str, raw: str) -> Optional[float]:
        """Parse a path age and check it lies in the accepted range."""
        if not _NUMBER_RE.match(raw.strip()):
            self.fail(field, "Age must be a number", "path", raw)
            return None
        value = float(raw)
        if not math.isfinite(value) or not MIN_AGE <= value <= MAX_AGE:
            self.fail(field, f"Age must be between {MIN_AGE} and {MAX_AGE}", "path", raw)
            return None
        return value

    def body(self, model: Type[ModelT], payload: Any) -> Optional[ModelT]:
        """Validate a JSON body against ``model``, recording every error."""
        if payload is None:
            payload = {}
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            self.errors.extend(field_errors_from(exc.errors(), location="body"))
            return None

    def raise_if_failed(self) -> None:
        if self.errors:
            raise RequestValidationFailed(self.errors)
