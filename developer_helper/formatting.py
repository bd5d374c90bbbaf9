"""
Parsing, number and display formatting helpers.

Money and rounding work on ``Decimal`` so results match what a user would
compute by hand; floats are converted through their shortest ``repr``.
"""

from datetime import date
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional, Tuple, Type, TypeVar, Union

from pydantic import ValidationError

from .errors import InvalidArgumentError
from .logging import log_debug
from .validation import adapter_for

T = TypeVar("T")
Number = Union[int, float, Decimal]

DEFAULT_CURRENCY_SYMBOL = "₺"
DEFAULT_DATE_FORMAT = "%d.%m.%Y"


def is_in_range(value: Number, minimum: Number, maximum: Number) -> bool:
    """Inclusive on both ends."""
    return minimum <= value <= maximum


def is_positive(value: Number) -> bool:
    return value > 0


def is_negative(value: Number) -> bool:
    return value < 0


def try_parse(value: Optional[str], target_type: Type[T]) -> Tuple[bool, Optional[T]]:
    """
    Convert a string to ``target_type`` with pydantic's lax coercion.

    Returns:
        ``(True, value)`` on success, ``(False, None)`` otherwise
    """
    if not value:
        return False, None
    try:
        return True, adapter_for(target_type).validate_python(value)
    except ValidationError:
        return False, None


def parse_or_default(value: Optional[str], default: T, target_type: Optional[Type[T]] = None) -> T:
    """
    Convert a string, falling back to ``default`` when it is empty or does
    not convert.

    ``target_type`` defaults to the type of ``default``.
    """
    if target_type is None:
        if default is None:
            raise InvalidArgumentError("target_type is required when default is None")
        target_type = type(default)

    parsed, result = try_parse(value, target_type)
    if not parsed:
        log_debug("Using default for unparsable value", target_type=getattr(target_type, "__name__", repr(target_type)))
        return default
    return result


def _to_decimal(value: Number) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, str)):
        raise InvalidArgumentError("value must be a number", details={"value_type": type(value).__name__})
    try:
        result = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except InvalidOperation:
        raise InvalidArgumentError("value must be a number", details={"value": repr(value)}) from None
    if not result.is_finite():
        raise InvalidArgumentError("value must be finite", details={"value": repr(value)})
    return result


def _quantize(value: Number, decimals: int, rounding: str) -> Decimal:
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise InvalidArgumentError("decimals must be a non-negative integer", details={"decimals": repr(decimals)})
    return _to_decimal(value).quantize(Decimal(1).scaleb(-decimals), rounding=rounding)


def round_to(value: Number, decimals: int = 0) -> Decimal:
    """Round half away from zero."""
    return _quantize(value, decimals, ROUND_HALF_UP)


def round_up(value: Number, decimals: int = 0) -> Decimal:
    """Round towards positive infinity."""
    return _quantize(value, decimals, ROUND_CEILING)


def round_down(value: Number, decimals: int = 0) -> Decimal:
    """Round towards negative infinity."""
    return _quantize(value, decimals, ROUND_FLOOR)


def format_currency(value: Number, symbol: str = DEFAULT_CURRENCY_SYMBOL, decimals: int = 2) -> str:
    """
    Format an amount with thousands separators, e.g. ``₺1,234.50``.

    The amount is rounded half away from zero to ``decimals`` places.
    """
    return f"{symbol}{round_to(value, decimals):,.{decimals}f}"


def format_date(value: date, fmt: str = DEFAULT_DATE_FORMAT) -> str:
    return value.strftime(fmt)


def format_phone_number(phone_number: Optional[str]) -> Optional[str]:
    """
    Format a ten-digit number as ``XXX XXX XXXX``.

    Other lengths come back as their digits only; empty input is returned
    unchanged.
    """
    if not phone_number:
        return phone_number
    digits = "".join(ch for ch in phone_number if ch.isdecimal())
    if len(digits) != 10:
        return digits
    return f"{digits[:3]} {digits[3:6]} {digits[6:]}"
