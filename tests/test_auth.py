from __future__ import annotations

from antilopay import AuthHeaderBuilder, SignatureEngine, canonical_json


def test_build_headers(loopback_config):
    headers = AuthHeaderBuilder(loopback_config).build({"order_id": "TEST1", "amount": 10})
    assert set(headers) == {"X-Apay-Secret-Id", "X-Apay-Sign-Version", "X-Apay-Sign"}
    assert headers["X-Apay-Secret-Id"] == "secret_abcdef"
    assert headers["X-Apay-Sign-Version"] == "1"
    engine = SignatureEngine(loopback_config)
    assert engine.verify({"amount": 10, "order_id": "TEST1"}, headers["X-Apay-Sign"])


def test_build_for_body_signs_exact_bytes(loopback_config):
    body = b'{ "order_id" : "TEST1" }'
    headers = AuthHeaderBuilder(loopback_config).build_for_body(body)
    engine = SignatureEngine(loopback_config)
    assert engine.verify_bytes(body, headers["X-Apay-Sign"]) is True
    # the canonical form of the same data is a different byte string
    assert engine.verify_bytes(canonical_json({"order_id": "TEST1"}), headers["X-Apay-Sign"]) is False


def test_headers_follow_reconfiguration(loopback_config):
    builder = AuthHeaderBuilder(loopback_config)
    loopback_config.set_sign_version(2)
    assert builder.build({})["X-Apay-Sign-Version"] == "2"
