from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str, *, field: Optional[str] = None) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required", field=field or field_name)
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int, *, field: Optional[str] = None) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters", field=field or field_name)
    return value


def parse_decimal(
    value: Union[str, int, Decimal, None],
    field_name: str,
    *,
    field: Optional[str] = None,
) -> Decimal:
    """Parse a form value into a non-negative Decimal.

    Blank input is read as zero, matching the defaults of a new claim.
    """
    if isinstance(value, Decimal):
        return require_non_negative(value, field_name, field=field)

    raw = str(value).strip() if value is not None else ""
    if not raw:
        return Decimal("0")
    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number", field=field or field_name)

    return require_non_negative(amount, field_name, field=field)


def require_non_negative(amount: Decimal, field_name: str, *, field: Optional[str] = None) -> Decimal:
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a number", field=field or field_name)
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative", field=field or field_name)
    return amount
