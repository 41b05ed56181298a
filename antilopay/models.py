from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict, List, Literal, Mapping, Optional, Union
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import ProtocolError
from .utils import amount_to_number, safe_merchant_extra, validate_amount

# =============================================================================
# Base model: permissive to avoid breaking on API additions
# =============================================================================
class _APIModel(BaseModel):
    """
    Loose model that accepts extra fields so the SDK doesn't break
    when Antilopay adds request or response properties.
    """
    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,   # allow using field names when aliases exist
        str_strip_whitespace=True,
    )


# =============================================================================
# Customer
# =============================================================================
class Customer(_APIModel):
    """
    Payer details. Antilopay needs at least one contact: email or phone.
    """
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    ip_address: Optional[str] = Field(None, alias="ip")
    full_name: Optional[str] = Field(None, alias="fullname")

    @model_validator(mode="after")
    def _email_or_phone(self) -> "Customer":
        if not self.email and not self.phone:
            raise ValueError("customer needs an email or a phone.")
        return self

    def to_canonical(self) -> Dict[str, str]:
        """Wire shape; always carries all five keys."""
        return {
            "email": self.email or "",
            "phone": self.phone or "",
            "address": self.address or "",
            "ip": self.ip_address or "",
            "fullname": self.full_name or "",
        }


# =============================================================================
# Payment creation request
# =============================================================================
# Hint for IDEs; the API accepts other method codes too.
PaymentMethod = Literal["SBP", "CARD_RU", "SBER_PAY", "T_PAY", "SBP_B2B"]
ProductType = Literal["goods", "services"]


class PaymentParams(_APIModel):
    """Routing switches for payment/create."""
    direct_nspk: bool = False


class PaymentIntentRequest(_APIModel):
    """
    Request body for payment/create (project_identificator is added by
    ``to_wire``).
    """
    amount: Decimal
    order_id: str = Field(..., min_length=1)
    currency: str = "RUB"
    product_name: str = Field(..., min_length=1)
    product_type: ProductType = "services"
    product_quantity: int = Field(1, ge=1)
    vat: int = Field(0, ge=0, le=100)
    description: str = Field(..., min_length=1)
    success_url: Optional[str] = None
    fail_url: Optional[str] = None
    customer: Customer
    prefer_methods: Optional[List[str]] = None
    merchant_extra: Optional[str] = Field(None, max_length=255)
    params: Optional[PaymentParams] = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_valid(cls, v: Any) -> Decimal:
        try:
            return validate_amount(v)
        except TypeError as e:
            raise ValueError(str(e)) from e

    @field_validator("currency")
    @classmethod
    def _currency_norm(cls, v: str) -> str:
        if not isinstance(v, str) or len(v) != 3 or not v.isalpha():
            raise ValueError("currency must be a 3-letter ISO code, e.g., 'RUB'.")
        return v.upper()

    @field_validator("merchant_extra", mode="before")
    @classmethod
    def _merchant_extra_str(cls, v: Any) -> Optional[str]:
        try:
            return safe_merchant_extra(v)
        except TypeError as e:
            raise ValueError(str(e)) from e

    @field_validator("prefer_methods")
    @classmethod
    def _methods_norm(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        out = [m.strip().upper() for m in v if m and m.strip()]
        return out or None

    def to_wire(self, project_id: str) -> Dict[str, Any]:
        """JSON-ready body for payment/create."""
        body = self.model_dump(exclude_none=True, exclude={"amount", "customer"})
        body["project_identificator"] = project_id
        body["amount"] = amount_to_number(self.amount)
        body["customer"] = self.customer.to_canonical()
        return body


# =============================================================================
# Payment creation response (tagged by direct_nspk)
# =============================================================================
_NSPK_TX_KEYS = ("nspk_transaction_id", "transaction_id", "trx_id")


class _PaymentIntentBase(_APIModel):
    code: int = 0
    payment_id: str = Field(..., min_length=1)
    payment_url: str = Field(..., min_length=1)
    error: Optional[str] = None


class PaymentIntent(_PaymentIntentBase):
    """Standard routing: no transaction identifier."""
    direct_nspk: Literal[False] = False


class DirectNspkPaymentIntent(_PaymentIntentBase):
    """Direct settlement (NSPK) routing: carries the NSPK transaction id."""
    direct_nspk: Literal[True] = True
    nspk_transaction_id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices(*_NSPK_TX_KEYS),
    )


PaymentIntentResponse = Union[PaymentIntent, DirectNspkPaymentIntent]


def parse_payment_intent_response(data: Any) -> PaymentIntentResponse:
    """
    Pick the response variant from ``direct_nspk`` (absent means False) and
    validate it. Raises ProtocolError for shapes outside the contract.
    """
    if not isinstance(data, Mapping):
        raise ProtocolError("payment/create reply is not a JSON object", payload=data)

    mode = data.get("direct_nspk")
    if mode is None:
        mode = False
    if not isinstance(mode, bool):
        raise ProtocolError(f"direct_nspk must be a boolean, got {mode!r}", payload=dict(data))

    if not mode and any(data.get(k) for k in _NSPK_TX_KEYS):
        raise ProtocolError(
            "transaction id present on a reply without direct_nspk", payload=dict(data)
        )

    model = DirectNspkPaymentIntent if mode else PaymentIntent
    try:
        return model.model_validate({**data, "direct_nspk": mode})
    except ValidationError as e:
        raise ProtocolError(
            f"malformed payment/create reply ({'direct_nspk' if mode else 'standard'}): "
            f"{e.error_count()} error(s): {e.errors()[0]['msg']}",
            payload=dict(data),
        ) from e


# =============================================================================
# Webhook notification
# =============================================================================
class PaymentNotification(_APIModel):
    """
    Callback body sent by Antilopay (best-effort typed; unknown keys kept).
    """
    type: Optional[str] = None
    payment_id: Optional[str] = None
    order_id: Optional[str] = None
    ctime: Optional[Union[str, int, float]] = None
    amount: Optional[Decimal] = None
    original_amount: Optional[Decimal] = None
    fee: Optional[Decimal] = None
    status: Optional[str] = None
    currency: Optional[str] = None
    product_name: Optional[str] = None
    description: Optional[str] = None
    pay_method: Optional[str] = None
    pay_data: Any = None
    customer_ip: Optional[str] = None
    customer_useragent: Optional[str] = None
    customer: Any = None
    merchant_extra: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return str(self.status or "").upper() == "SUCCESS"


__all__ = [
    "Customer",
    "PaymentMethod",
    "ProductType",
    "PaymentParams",
    "PaymentIntentRequest",
    "PaymentIntent",
    "DirectNspkPaymentIntent",
    "PaymentIntentResponse",
    "parse_payment_intent_response",
    "PaymentNotification",
]
