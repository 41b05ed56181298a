"""
Antilopay SDK Authentication
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

X-Apay-* header construction for outbound requests.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from .config import AntilopayConfig
from .signing import SignatureEngine


SECRET_ID_HEADER = "X-Apay-Secret-Id"
SIGN_VERSION_HEADER = "X-Apay-Sign-Version"
SIGN_HEADER = "X-Apay-Sign"


class AuthHeaderBuilder:
    """Authentication headers for Antilopay API requests."""

    def __init__(self, config: AntilopayConfig, signer: SignatureEngine | None = None):
        self.config = config
        self.signer = signer or SignatureEngine(config)

    def build_for_body(self, body: bytes) -> Dict[str, str]:
        """
        Headers for a request whose body is exactly ``body``.

        The signature covers these bytes as transmitted, so the caller must
        send ``body`` unchanged.
        """
        return {
            SECRET_ID_HEADER: self.config.secret_id or "",
            SIGN_VERSION_HEADER: str(self.config.sign_version),
            SIGN_HEADER: self.signer.sign_bytes(body),
        }

    def build(self, payload: Mapping[str, Any]) -> Dict[str, str]:
        """Headers for the canonical serialization of ``payload``."""
        return self.build_for_body(self.signer.serialize(payload))


__all__ = ["AuthHeaderBuilder", "SECRET_ID_HEADER", "SIGN_VERSION_HEADER", "SIGN_HEADER"]
