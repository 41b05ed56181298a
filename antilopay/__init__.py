"""
Antilopay-Python SDK

Framework-agnostic helpers for:
- Signing requests (X-Apay-Sign, RSA-SHA256)
- Payment creation with direct settlement (NSPK) aware responses
- Signature round-trip checks
- Webhook signature verification & routing
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Version
# ---------------------------------------------------------------------------
__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Public API re-exports
# ---------------------------------------------------------------------------
from .config import AntilopayConfig, get_config, set_config
from .signing import SignatureEngine, canonical_json
from .auth import AuthHeaderBuilder
from .client import AntilopayClient
from .errors import (
    AntilopaySDKError,
    ConfigurationError,
    SigningError,
    VerificationError,
    SignatureFormatError,
    MissingSigningKeyError,
    MissingVerificationKeyError,
    TransportError,
    ApiError,
    ProtocolError,
)
from .models import (
    Customer,
    PaymentParams,
    PaymentIntentRequest,
    PaymentIntent,
    DirectNspkPaymentIntent,
    PaymentIntentResponse,
    PaymentNotification,
    parse_payment_intent_response,
)
from .resources import (
    PaymentsAPI,
    SignatureAPI,
    WebhookVerifier,
    WebhookRouter,
    Accepted,
    Rejected,
    Outcome,
)
from .utils import (
    validate_amount,
    amount_to_number,
    make_order_id,
    safe_merchant_extra,
)
from .debug import dprint, djson, is_enabled as debug_enabled, set_debug as set_debug_enabled

# ---------------------------------------------------------------------------
# Debug print on import (sanitized; only if ANTILOPAY_DEBUG is truthy)
# ---------------------------------------------------------------------------
dprint("SDK import", {"version": __version__})

__all__ = (
    "__version__",
    # core
    "AntilopayConfig",
    "get_config",
    "set_config",
    "SignatureEngine",
    "canonical_json",
    "AuthHeaderBuilder",
    "AntilopayClient",
    # errors
    "AntilopaySDKError",
    "ConfigurationError",
    "SigningError",
    "VerificationError",
    "SignatureFormatError",
    "MissingSigningKeyError",
    "MissingVerificationKeyError",
    "TransportError",
    "ApiError",
    "ProtocolError",
    # models
    "Customer",
    "PaymentParams",
    "PaymentIntentRequest",
    "PaymentIntent",
    "DirectNspkPaymentIntent",
    "PaymentIntentResponse",
    "PaymentNotification",
    "parse_payment_intent_response",
    # resources
    "PaymentsAPI",
    "SignatureAPI",
    # webhook helpers
    "WebhookVerifier",
    "WebhookRouter",
    "Accepted",
    "Rejected",
    "Outcome",
    # utils
    "validate_amount",
    "amount_to_number",
    "make_order_id",
    "safe_merchant_extra",
    # debug controls
    "dprint",
    "djson",
    "debug_enabled",
    "set_debug_enabled",
)
