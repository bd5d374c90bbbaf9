"""
Validation helpers built on pydantic.

Entities are pydantic models; their field constraints are the validation
rules. String checks (email, URL, UUID, date) run the value through a
``TypeAdapter`` for the matching pydantic type.
"""

from datetime import date, datetime
from functools import lru_cache
from typing import Annotated, Any, List, Optional, Type
from uuid import UUID

from pydantic import AnyUrl, BaseModel, EmailStr, TypeAdapter, ValidationError

from .errors import EntityValidationError, InvalidArgumentError

_PHONE_DIGITS = 10


@lru_cache(maxsize=None)
def adapter_for(target_type: Any) -> TypeAdapter:
    """Return a cached ``TypeAdapter`` for ``target_type``."""
    return TypeAdapter(target_type)


def _format_errors(error: ValidationError) -> List[str]:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        messages.append(f"{location}: {item['msg']}" if location else item["msg"])
    return messages


def validate_entity(entity: Any, model: Optional[Type[BaseModel]] = None) -> List[str]:
    """
    Validate an entity against its model's field constraints.

    Model instances are re-validated from their current field values, so
    instances built with ``model_construct`` or mutated after creation are
    checked too. A mapping can be validated by passing ``model``.

    Args:
        entity: Model instance, or a mapping when ``model`` is given
        model: Model class to validate a mapping against

    Returns:
        Error messages; empty when the entity is valid
    """
    if isinstance(entity, BaseModel):
        model = model or type(entity)
        data = entity.model_dump()
    elif model is not None:
        data = entity
    else:
        raise InvalidArgumentError("entity must be a pydantic model instance or model must be given",
                                   details={"entity_type": type(entity).__name__})

    try:
        model.model_validate(data)
    except ValidationError as e:
        return _format_errors(e)
    return []


def is_valid(entity: Any, model: Optional[Type[BaseModel]] = None) -> bool:
    return not validate_entity(entity, model)


def get_validation_errors(entity: Any, model: Optional[Type[BaseModel]] = None) -> str:
    """Error messages joined with ``", "``; empty string when valid."""
    return ", ".join(validate_entity(entity, model))


def ensure_valid(entity: Any, model: Optional[Type[BaseModel]] = None) -> None:
    """Raise ``EntityValidationError`` listing every failed constraint."""
    errors = validate_entity(entity, model)
    if errors:
        raise EntityValidationError(", ".join(errors), details={"errors": errors})


def validate_property(model: Type[BaseModel], name: str, value: Any) -> List[str]:
    """
    Validate a single value against one field of ``model``.

    Raises:
        InvalidArgumentError: If the model has no such field
    """
    field = model.model_fields.get(name)
    if field is None:
        raise InvalidArgumentError(f"{model.__name__} has no field {name!r}", details={"field": name})

    target = Annotated[(field.annotation, *field.metadata)] if field.metadata else field.annotation
    try:
        TypeAdapter(target).validate_python(value)
    except ValidationError as e:
        return [f"{name}: {item['msg']}" for item in e.errors()]
    return []


def _matches(target_type: Any, value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        adapter_for(target_type).validate_python(value)
    except ValidationError:
        return False
    return True


def is_valid_email(email: Optional[str]) -> bool:
    return _matches(EmailStr, email)


def is_valid_phone_number(phone_number: Optional[str]) -> bool:
    """True when the value holds exactly ten digits, ignoring separators."""
    if not phone_number:
        return False
    return sum(1 for ch in phone_number if ch.isdecimal()) == _PHONE_DIGITS


def is_valid_url(url: Optional[str]) -> bool:
    """True for absolute URLs with a scheme."""
    return _matches(AnyUrl, url)


def is_valid_guid(guid: Optional[str]) -> bool:
    return _matches(UUID, guid)


def is_valid_date(value: Optional[str]) -> bool:
    """
    True for ISO 8601 dates and date-times.

    Bare numbers are rejected even though pydantic reads them as unix
    timestamps.
    """
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        float(value)
    except ValueError:
        pass
    else:
        return False
    return _matches(datetime, value) or _matches(date, value)


def to_title_case(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    return value.lower().title()
