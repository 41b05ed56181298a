from __future__ import annotations

"""
Resource APIs for the Antilopay SDK.

Public exports:

- PaymentsAPI
- SignatureAPI

Webhook helpers:

- WebhookVerifier
- WebhookRouter
- Accepted
- Rejected
"""

from .payments import PaymentsAPI
from .signature import SignatureAPI
from .webhooks import (
    Accepted,
    Rejected,
    Outcome,
    WebhookVerifier,
    WebhookRouter,
    SIGNATURE_HEADER,
)

__all__ = (
    "PaymentsAPI",
    "SignatureAPI",
    "Accepted",
    "Rejected",
    "Outcome",
    "WebhookVerifier",
    "WebhookRouter",
    "SIGNATURE_HEADER",
)
