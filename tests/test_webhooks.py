from __future__ import annotations

import json

import pytest

from antilopay import (
    Accepted,
    ConfigurationError,
    PaymentNotification,
    Rejected,
    SignatureEngine,
    WebhookRouter,
    WebhookVerifier,
    canonical_json,
)
from antilopay.resources.webhooks import MALFORMED_PAYLOAD, SIGNATURE_MISMATCH


NOTIFICATION = {
    "type": "payment",
    "payment_id": "APAY1",
    "order_id": "TEST1",
    "ctime": "2025-01-01 12:00:00",
    "amount": 10,
    "original_amount": 10,
    "fee": 0.4,
    "status": "SUCCESS",
    "currency": "RUB",
    "product_name": "Widget",
    "description": "Order TEST1",
    "pay_method": "SBP",
    "customer": {"email": "a@b.com", "phone": "", "address": "", "ip": "", "fullname": ""},
    "merchant_extra": "user=42",
}


@pytest.fixture
def verifier(config) -> WebhookVerifier:
    return WebhookVerifier(config)


def _signed(processor_signer: SignatureEngine, payload=NOTIFICATION):
    body = canonical_json(payload)
    return body, processor_signer.sign_bytes(body)


def test_authentic_notification_is_accepted(verifier, processor_signer):
    body, sig = _signed(processor_signer)
    outcome = verifier.verify(body, sig)
    assert isinstance(outcome, Accepted)
    assert outcome.accepted is True
    assert outcome.payload == NOTIFICATION

    n = outcome.notification
    assert isinstance(n, PaymentNotification)
    assert n.payment_id == "APAY1"
    assert n.is_success is True


def test_str_body_is_accepted(verifier, processor_signer):
    body, sig = _signed(processor_signer)
    assert verifier.verify(body.decode("utf-8"), sig).accepted is True


def test_flipped_signature_character_is_rejected(verifier, processor_signer, flip_b64):
    body, sig = _signed(processor_signer)
    outcome = verifier.verify(body, flip_b64(sig))
    assert outcome == Rejected(SIGNATURE_MISMATCH)
    assert outcome.accepted is False


def test_tampered_body_is_rejected(verifier, processor_signer):
    _, sig = _signed(processor_signer)
    tampered = canonical_json({**NOTIFICATION, "amount": 1000})
    assert verifier.verify(tampered, sig) == Rejected(SIGNATURE_MISMATCH)


def test_notification_signed_with_merchant_key_is_rejected(config, verifier):
    # our own private key must never authenticate an inbound notification
    body = canonical_json(NOTIFICATION)
    sig = SignatureEngine(config).sign_bytes(body)
    assert verifier.verify(body, sig) == Rejected(SIGNATURE_MISMATCH)


def test_literal_body_signature_is_accepted(verifier, processor_signer):
    body = json.dumps(NOTIFICATION, indent=2, ensure_ascii=False).encode("utf-8")
    sig = processor_signer.sign_bytes(body)
    outcome = verifier.verify(body, sig)
    assert outcome.accepted is True
    assert outcome.payload["order_id"] == "TEST1"


@pytest.mark.parametrize(
    "body",
    [b"", b"not json", b"[1, 2, 3]", b'"string"', b"\xff\xfe\x00", b'{"amount": NaN}'],
)
def test_malformed_body_is_rejected(verifier, processor_signer, body):
    sig = processor_signer.sign_bytes(body)
    assert verifier.verify(body, sig) == Rejected(MALFORMED_PAYLOAD)


@pytest.mark.parametrize("depth", [5_000, 100_000])
def test_deeply_nested_body_is_rejected(verifier, depth):
    body = b'{"a":' + b"[" * depth + b"]" * depth + b"}"
    assert verifier.verify(body, "AAAA") == Rejected(MALFORMED_PAYLOAD)


@pytest.mark.parametrize("sig", ["%%%", "abc", "!!not base64!!"])
def test_undecodable_signature_is_rejected(verifier, processor_signer, sig):
    body, _ = _signed(processor_signer)
    assert verifier.verify(body, sig) == Rejected(SIGNATURE_MISMATCH)


@pytest.mark.parametrize("sig", [None, "", "   "])
def test_missing_signature_is_rejected(verifier, processor_signer, sig):
    body, _ = _signed(processor_signer)
    assert verifier.verify(body, sig) == Rejected(SIGNATURE_MISMATCH)


def test_verify_request_reads_callback_header(verifier, processor_signer):
    body, sig = _signed(processor_signer)
    assert verifier.verify_request(body, {"x-apay-callback": sig}).accepted is True
    assert verifier.verify_request(body, {"Content-Type": "application/json"}) == Rejected(SIGNATURE_MISMATCH)


def test_processing_loop_never_raises(verifier, processor_signer, flip_b64):
    body, sig = _signed(processor_signer)
    deliveries = [
        (body, sig),
        (body, flip_b64(sig)),
        (b"{", sig),
        (body, "zzz"),
        (body, sig),  # redelivery of the same notification
    ]
    outcomes = [verifier.verify(b, s) for b, s in deliveries]
    assert [o.accepted for o in outcomes] == [True, False, False, False, True]


def test_missing_public_key_raises(config, processor_signer):
    cfg = config.copy_with()
    cfg.public_key = ""
    body, sig = _signed(processor_signer)
    with pytest.raises(ConfigurationError):
        WebhookVerifier(cfg).verify(body, sig)


# ------------------------- router -------------------------

def test_router_dispatches_accepted_notifications(verifier, processor_signer):
    router = WebhookRouter()
    seen = []

    @router.on("payment")
    def _payment(n):
        seen.append(("payment", n.order_id))
        return "ok"

    @router.on("*")
    def _all(n):
        seen.append(("*", n.type))

    @router.on("refund")
    def _refund(n):  # pragma: no cover - must not run
        seen.append(("refund", n.order_id))

    body, sig = _signed(processor_signer)
    results = router.dispatch(verifier.verify(body, sig))
    assert results == ["ok", None]
    assert seen == [("payment", "TEST1"), ("*", "payment")]


def test_router_ignores_rejected_outcomes():
    router = WebhookRouter()
    router.add("*", lambda n: pytest.fail("handler must not run"))
    assert router.dispatch(Rejected(SIGNATURE_MISMATCH)) == []


def test_router_collects_handler_errors(verifier, processor_signer):
    router = WebhookRouter()

    @router.on("payment")
    def _boom(n):
        raise RuntimeError("handler failed")

    body, sig = _signed(processor_signer)
    results = router.dispatch(verifier.verify(body, sig))
    assert len(results) == 1
    assert isinstance(results[0], RuntimeError)


def test_router_rejects_empty_event_type():
    with pytest.raises(ValueError):
        WebhookRouter().on("")


def test_router_dispatches_unusually_shaped_notification(verifier, processor_signer):
    router = WebhookRouter()
    seen = []

    @router.on("payment")
    def _payment(n):
        seen.append((n.ctime, n.customer, n.is_success))

    payload = {"type": "payment", "ctime": 1735732800.5, "customer": "a@b.com", "status": "SUCCESS"}
    body, sig = _signed(processor_signer, payload)
    outcome = verifier.verify(body, sig)
    assert outcome.accepted is True
    assert router.dispatch(outcome) == [None]
    assert seen == [(1735732800.5, "a@b.com", True)]


def test_notification_falls_back_to_raw_values(verifier, processor_signer):
    payload = {"type": "payment", "order_id": "TEST1", "amount": "n/a", "status": 5, "extra": [1]}
    body, sig = _signed(processor_signer, payload)
    outcome = verifier.verify(body, sig)

    notification = outcome.notification
    assert notification.order_id == "TEST1"
    assert notification.amount == "n/a"
    assert notification.is_success is False

    router = WebhookRouter()
    router.add("payment", lambda n: n.order_id)
    assert router.dispatch(outcome) == ["TEST1"]


def test_non_string_type_only_reaches_wildcard(verifier, processor_signer):
    body, sig = _signed(processor_signer, {"type": ["payment"], "order_id": "TEST1"})
    router = WebhookRouter()
    router.add("payment", lambda n: pytest.fail("typed handler must not run"))
    router.add("*", lambda n: n.order_id)
    assert router.dispatch(verifier.verify(body, sig)) == ["TEST1"]
