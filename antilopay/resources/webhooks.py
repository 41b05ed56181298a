# antilopay/resources/webhooks.py
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..config import AntilopayConfig
from ..debug import dprint, djson
from ..errors import SignatureFormatError
from ..models import PaymentNotification
from ..signing import SignatureEngine, canonical_json


# Header carrying the processor's signature on callbacks
SIGNATURE_HEADER = "X-Apay-Callback"

MALFORMED_PAYLOAD = "malformed payload"
SIGNATURE_MISMATCH = "signature mismatch"


# ------------------------
# Outcomes
# ------------------------

@dataclass(frozen=True)
class Accepted:
    """The notification is authentic; ``payload`` is the parsed body."""
    payload: Dict[str, Any]

    accepted: ClassVar[bool] = True

    @property
    def notification(self) -> PaymentNotification:
        try:
            return PaymentNotification.model_validate(self.payload)
        except ValidationError as e:
            # authentic but oddly shaped: hand over the raw values untyped
            dprint("webhooks.notification untyped", {"errors": e.error_count()})
            return PaymentNotification.model_construct(**self.payload)


@dataclass(frozen=True)
class Rejected:
    """The notification must be ignored; ``reason`` says why."""
    reason: str

    accepted: ClassVar[bool] = False


Outcome = Union[Accepted, Rejected]


# ------------------------
# Helpers
# ------------------------

def _get_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    for k, v in headers.items():
        if k.lower() == name.lower():
            return v
    return None


def _reject_constant(token: str) -> Any:
    raise ValueError(f"non-standard JSON constant {token}")


def _parse_body(raw_body: Union[str, bytes, bytearray]) -> Optional[Dict[str, Any]]:
    """JSON object from the raw body, or None when it is not one."""
    try:
        text = raw_body.decode("utf-8") if isinstance(raw_body, (bytes, bytearray)) else raw_body
        data = json.loads(text, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError, TypeError, AttributeError, RecursionError):
        return None
    return data if isinstance(data, dict) else None


# ------------------------
# Verifier
# ------------------------

class WebhookVerifier:
    """
    Authenticates Antilopay callbacks with the processor's public key.

    Inbound data never raises: every notification ends up Accepted or
    Rejected. Missing or malformed key configuration still raises, since no
    notification could ever be accepted until it is fixed.

        verifier = WebhookVerifier(config)
        outcome = verifier.verify_request(request.body, request.headers)
        if outcome.accepted:
            handle(outcome.notification)
    """

    def __init__(self, config: AntilopayConfig, signer: Optional[SignatureEngine] = None):
        self.config = config
        self.signer = signer or SignatureEngine(config)

    def verify(
        self,
        raw_body: Union[str, bytes, bytearray],
        claimed_signature: Optional[str],
    ) -> Outcome:
        payload = _parse_body(raw_body)
        if payload is None:
            dprint("webhooks.verify() rejected", {"reason": MALFORMED_PAYLOAD})
            return Rejected(MALFORMED_PAYLOAD)

        try:
            canonical = canonical_json(payload)
        except (TypeError, ValueError, RecursionError) as e:
            dprint("webhooks.verify() rejected", {"reason": MALFORMED_PAYLOAD, "error": type(e).__name__})
            return Rejected(MALFORMED_PAYLOAD)

        if not isinstance(claimed_signature, str) or not claimed_signature.strip():
            dprint("webhooks.verify() rejected", {"reason": SIGNATURE_MISMATCH, "signature": None})
            return Rejected(SIGNATURE_MISMATCH)

        try:
            ok = self.signer.verify_bytes(canonical, claimed_signature)
            if not ok:
                # Antilopay may have signed its literal body rather than our
                # canonical form of it; accept either exact byte sequence.
                raw = raw_body.encode("utf-8") if isinstance(raw_body, str) else bytes(raw_body)
                if raw != canonical:
                    ok = self.signer.verify_bytes(raw, claimed_signature)
        except SignatureFormatError as e:
            dprint("webhooks.verify() undecodable signature", {"error": str(e)})
            ok = False

        if not ok:
            dprint("webhooks.verify() rejected", {"reason": SIGNATURE_MISMATCH})
            return Rejected(SIGNATURE_MISMATCH)

        djson("webhooks.verify() accepted payload", payload)
        return Accepted(payload)

    def verify_request(
        self,
        raw_body: Union[str, bytes, bytearray],
        headers: Mapping[str, str],
        *,
        header_name: str = SIGNATURE_HEADER,
    ) -> Outcome:
        """verify() with the signature taken from the callback headers."""
        return self.verify(raw_body, _get_header(headers, header_name))


# ------------------------
# Tiny notification router
# ------------------------

Handler = Callable[[PaymentNotification], Any]

class WebhookRouter:
    """
    Minimal router keyed by notification ``type``:
        router = WebhookRouter()
        @router.on("payment")
        def _h(n): ...
        # wildcard handler:
        @router.on("*")
        def _all(n): ...

        outcome = verifier.verify_request(body, headers)
        results = router.dispatch(outcome)
    """
    def __init__(self) -> None:
        self._map: Dict[str, List[Handler]] = {}

    def on(self, event_type: str) -> Callable[[Handler], Handler]:
        if not event_type or not isinstance(event_type, str):
            raise ValueError("event_type must be a non-empty string (or '*').")

        def _decorator(func: Handler) -> Handler:
            self._map.setdefault(event_type, []).append(func)
            dprint("webhooks.router.on()", {"event_type": event_type, "handler": getattr(func, "__name__", "handler")})
            return func

        return _decorator

    def add(self, event_type: str, func: Handler) -> None:
        self._map.setdefault(event_type, []).append(func)
        dprint("webhooks.router.add()", {"event_type": event_type, "handler": getattr(func, "__name__", "handler")})

    def handlers_for(self, event_type: Optional[str]) -> Iterable[Handler]:
        if not event_type:
            # no type => only wildcard
            return self._map.get("*", [])
        return [*self._map.get(event_type, []), *self._map.get("*", [])]

    def dispatch(self, outcome: Outcome) -> List[Any]:
        """
        Run the handlers for an Accepted outcome. Rejected outcomes are
        never dispatched. Handler exceptions are returned, not raised.
        """
        if not isinstance(outcome, Accepted):
            dprint("webhooks.router.dispatch() skipped", {"reason": getattr(outcome, "reason", None)})
            return []
        notification = outcome.notification
        event_type = notification.type if isinstance(notification.type, str) else None
        dprint("webhooks.router.dispatch()", {"type": event_type})
        out: List[Any] = []
        for fn in self.handlers_for(event_type):
            try:
                out.append(fn(notification))
            except Exception as e:
                dprint("webhooks.router handler error", {"handler": getattr(fn, "__name__", "handler"), "error": repr(e)})
                out.append(e)
        return out


__all__ = [
    "Accepted",
    "Rejected",
    "Outcome",
    "WebhookVerifier",
    "WebhookRouter",
    "SIGNATURE_HEADER",
    "MALFORMED_PAYLOAD",
    "SIGNATURE_MISMATCH",
]
