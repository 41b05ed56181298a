from __future__ import annotations
from typing import Any, Optional

from ..client import AntilopayClient
from ..debug import dprint, djson
from ..models import (
    PaymentIntentRequest,
    PaymentIntentResponse,
    parse_payment_intent_response,
)


CREATE_PATH = "/payment/create"


def _validate_order_id(order_id: Any) -> None:
    if not isinstance(order_id, str) or not order_id.strip():
        raise ValueError("order_id is required and must be a non-empty string.")


class PaymentsAPI:
    """
    Payment creation (payment/create).

    Notes:
      - order_id must be unique per merchant. The SDK does not track it; a
        duplicate comes back from Antilopay as ApiError with a nonzero code.
      - Nothing is retried here. TransportError means the outcome is
        unknown; check the order before sending it again.
    """

    def __init__(self, client: AntilopayClient):
        self.client = client

    def create_payment_intent(
        self,
        request: Optional[PaymentIntentRequest] = None,
        **fields: Any,
    ) -> PaymentIntentResponse:
        """
        Create a payment and return PaymentIntent or DirectNspkPaymentIntent
        depending on the reply's ``direct_nspk`` flag.

        Pass a PaymentIntentRequest, or its fields as keyword arguments.

        Raises
        ------
        ValueError / pydantic.ValidationError
            Invalid request (checked before any network I/O).
        SigningError
            The body could not be signed; nothing is sent.
        TransportError
            Network/timeout failure.
        ApiError
            Antilopay answered with a nonzero result code.
        ProtocolError
            The reply does not match the documented shape.
        """
        if request is None:
            _validate_order_id(fields.get("order_id"))
            request = PaymentIntentRequest.model_validate(fields)
        elif fields:
            raise TypeError("pass either a PaymentIntentRequest or keyword fields, not both.")
        _validate_order_id(request.order_id)

        dprint("payments.create_payment_intent()", {
            "order_id": request.order_id,
            "amount": str(request.amount),
            "currency": request.currency,
            "direct_nspk": bool(request.params and request.params.direct_nspk),
        })

        body = request.to_wire(self.client.config.project_id or "")
        djson("payments.create_payment_intent body", body)
        resp = self.client.post(CREATE_PATH, json=body)
        return parse_payment_intent_response(resp)
