from __future__ import annotations
import json
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Union

from .debug import dprint

# ==============================================================================
# Amount helpers
# ==============================================================================

# Antilopay amounts are major units with at most two fractional digits.
AMOUNT_EXPONENT = 2
_CENT = Decimal(1).scaleb(-AMOUNT_EXPONENT)  # == Decimal('0.01')

AmountLike = Union[Decimal, str, int, float]


def to_decimal(amount: AmountLike) -> Decimal:
    """
    Safely coerce to Decimal. Floats go through str() to avoid binary artifacts.
    """
    if isinstance(amount, bool):
        raise TypeError("amount must be Decimal, str, int, or float (not bool)")
    if isinstance(amount, Decimal):
        return amount
    if isinstance(amount, int):
        return Decimal(amount)
    if isinstance(amount, float):
        return Decimal(str(amount))
    if isinstance(amount, str):
        try:
            return Decimal(amount.strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount string: {amount!r}") from e
    raise TypeError("amount must be Decimal, str, int, or float")


def validate_amount(amount: AmountLike) -> Decimal:
    """
    Return ``amount`` as a Decimal after checking it is finite, positive and
    has no more than two fractional digits (no silent rounding).
    """
    dec = to_decimal(amount)
    if not dec.is_finite():
        raise ValueError(f"amount must be finite, got {amount!r}")
    if dec <= 0:
        raise ValueError(f"amount must be positive, got {amount!r}")
    if dec != dec.quantize(_CENT):
        raise ValueError(f"amount must have at most {AMOUNT_EXPONENT} fractional digits, got {amount!r}")
    if dec != dec.to_integral_value() and Decimal(repr(float(dec))) != dec:
        # goes on the wire as a JSON float; it must survive that unchanged
        raise ValueError(f"amount {amount!r} is too large to send with fractional digits")
    return dec


def amount_to_number(amount: AmountLike) -> Union[int, float]:
    """
    JSON number for an amount: 10 -> 10, Decimal('10.50') -> 10.5.
    """
    dec = to_decimal(amount)
    if dec == dec.to_integral_value():
        return int(dec)
    out = float(dec)
    if Decimal(repr(out)) != dec:
        raise ValueError(f"amount {amount!r} cannot be sent as a JSON number without rounding")
    return out


# ==============================================================================
# Order ids / merchant metadata
# ==============================================================================

def make_order_id(prefix: Optional[str] = "order") -> str:
    """
    Generate a unique merchant order id. Length kept < 64 chars.
    """
    base = (prefix or "order").strip() or "order"
    key = f"{base}_{uuid.uuid4().hex}"
    if len(key) > 64:
        key = key[:64]
    dprint("utils.make_order_id()", {"order_id": key})
    return key


MERCHANT_EXTRA_MAX = 255


def safe_merchant_extra(value: Union[str, Mapping[str, Any], None]) -> Optional[str]:
    """
    Produce the opaque ``merchant_extra`` string: strings pass through,
    mappings become compact JSON. Raises ValueError beyond 255 characters.
    """
    if value is None:
        return None
    if isinstance(value, Mapping):
        out = json.dumps(
            {str(k): v for k, v in value.items()},
            ensure_ascii=False,
            separators=(",", ":"),
            default=str,
        )
    elif isinstance(value, str):
        out = value
    else:
        raise TypeError("merchant_extra must be a string or a mapping")
    if len(out) > MERCHANT_EXTRA_MAX:
        raise ValueError(f"merchant_extra must be at most {MERCHANT_EXTRA_MAX} characters, got {len(out)}")
    return out


__all__ = [
    "to_decimal",
    "validate_amount",
    "amount_to_number",
    "make_order_id",
    "safe_merchant_extra",
    "MERCHANT_EXTRA_MAX",
]
