"""
Antilopay request signing
~~~~~~~~~~~~~~~~~~~~~~~~~

Outbound requests are signed with the merchant's RSA private key; inbound
notifications are verified with the processor's RSA public key. Both sides
sign the same canonical JSON bytes, see ``canonical_json``.
"""

from __future__ import annotations

import base64
import binascii
import json
from decimal import Decimal
from typing import Any, Mapping

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .config import AntilopayConfig
from .debug import dprint
from .errors import (
    ConfigurationError,
    MissingSigningKeyError,
    MissingVerificationKeyError,
    SignatureFormatError,
    SigningError,
    VerificationError,
)


_HASHES = {
    "RSA-SHA256": hashes.SHA256,
    "RSA-SHA384": hashes.SHA384,
    "RSA-SHA512": hashes.SHA512,
}


def _json_ready(value: Any) -> Any:
    # Decimals go out as JSON numbers: integral -> int, otherwise the
    # shortest round-tripping float text (Decimal("10.50") -> 10.5).
    # A value the float cannot hold exactly is refused, never rounded.
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"non-finite amount {value!r}")
        if value == value.to_integral_value():
            return int(value)
        out = float(value)
        if Decimal(repr(out)) != value:
            raise ValueError(f"{value} cannot be sent as a JSON number without rounding")
        return out
    if isinstance(value, Mapping):
        return {k: _json_ready(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_ready(v) for v in value]
    return value


def canonical_json(payload: Mapping[str, Any]) -> bytes:
    """
    Serialize a payload to the canonical byte form used for signing:
    sorted keys, no insignificant whitespace, UTF-8, NaN/Infinity rejected.

    Raises TypeError/ValueError for values JSON cannot represent.
    """
    if not isinstance(payload, Mapping):
        raise TypeError(f"payload must be a mapping, got {type(payload).__name__}")
    return json.dumps(
        _json_ready(payload),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


class SignatureEngine:
    """
    Signs and verifies canonical payloads with the keys held by an
    AntilopayConfig. Keys are loaded from the config on each call.
    """

    def __init__(self, config: AntilopayConfig):
        self.config = config

    # ------------ serialization ------------
    def serialize(self, payload: Mapping[str, Any]) -> bytes:
        """canonical_json() with failures reported as SigningError."""
        try:
            return canonical_json(payload)
        except (TypeError, ValueError, RecursionError) as e:
            raise SigningError(f"payload is not JSON-serializable: {e}") from e

    # ------------ keys ------------
    def _hash(self) -> hashes.HashAlgorithm:
        try:
            return _HASHES[self.config.sign_algorithm]()
        except KeyError:
            raise ConfigurationError(f"unsupported sign_algorithm {self.config.sign_algorithm!r}") from None

    def _private_key(self) -> rsa.RSAPrivateKey:
        pem = self.config.secret_key
        if not pem:
            raise MissingSigningKeyError("private signing key (secret_key) is not configured")
        try:
            key = serialization.load_pem_private_key(pem.encode("utf-8"), password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise SigningError(f"private signing key is malformed: {e}") from e
        if not isinstance(key, rsa.RSAPrivateKey):
            raise SigningError(f"private signing key must be RSA, got {type(key).__name__}")
        return key

    def _public_key(self) -> rsa.RSAPublicKey:
        pem = self.config.public_key
        if not pem:
            raise MissingVerificationKeyError("public verification key (public_key) is not configured")
        try:
            key = serialization.load_pem_public_key(pem.encode("utf-8"))
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise VerificationError(f"public verification key is malformed: {e}") from e
        if not isinstance(key, rsa.RSAPublicKey):
            raise VerificationError(f"public verification key must be RSA, got {type(key).__name__}")
        return key

    # ------------ text encoding ------------
    def _encode(self, raw: bytes) -> str:
        if self.config.sign_encoding == "hex":
            return raw.hex()
        return base64.b64encode(raw).decode("ascii")

    def _decode(self, signature: str) -> bytes:
        if not isinstance(signature, str) or not signature.strip():
            raise SignatureFormatError("signature is empty")
        try:
            if self.config.sign_encoding == "hex":
                return bytes.fromhex(signature.strip())
            return base64.b64decode(signature.strip(), validate=True)
        except (binascii.Error, ValueError) as e:
            raise SignatureFormatError(
                f"signature is not valid {self.config.sign_encoding}: {e}"
            ) from e

    # ------------ sign ------------
    def sign_bytes(self, data: bytes) -> str:
        """Sign an exact byte string with the private key."""
        key = self._private_key()
        raw = key.sign(data, padding.PKCS1v15(), self._hash())
        dprint("signing.sign_bytes()", {"bytes": len(data), "algorithm": self.config.sign_algorithm})
        return self._encode(raw)

    def sign(self, payload: Mapping[str, Any]) -> str:
        """Sign the canonical serialization of ``payload``."""
        return self.sign_bytes(self.serialize(payload))

    # ------------ verify ------------
    def verify_bytes(self, data: bytes, signature: str) -> bool:
        """
        Check ``signature`` over ``data`` with the public key.
        Returns False on mismatch; raises VerificationError on structural faults.
        """
        key = self._public_key()
        raw = self._decode(signature)
        try:
            key.verify(raw, data, padding.PKCS1v15(), self._hash())
        except InvalidSignature:
            dprint("signing.verify_bytes() mismatch", {"bytes": len(data)})
            return False
        return True

    def verify(self, payload: Mapping[str, Any], signature: str) -> bool:
        """Check ``signature`` over the canonical serialization of ``payload``."""
        try:
            data = canonical_json(payload)
        except (TypeError, ValueError, RecursionError) as e:
            raise VerificationError(f"payload is not JSON-serializable: {e}") from e
        return self.verify_bytes(data, signature)


__all__ = ["SignatureEngine", "canonical_json"]
