from __future__ import annotations
import json
from typing import Any, Optional, Dict

from .debug import dprint, djson


class AntilopaySDKError(Exception):
    """Base exception for all Antilopay SDK errors."""
    pass


class ConfigurationError(AntilopaySDKError):
    """Raised when configuration/credentials are invalid or missing."""
    pass


class SigningError(AntilopaySDKError):
    """Raised when an outbound payload cannot be signed."""
    pass


class VerificationError(AntilopaySDKError):
    """
    Raised for structural verification faults (bad public key, undecodable
    signature). A signature that simply does not match is NOT an error.
    """
    pass


class SignatureFormatError(VerificationError):
    """The signature text cannot be decoded with the configured encoding."""
    pass


class MissingSigningKeyError(ConfigurationError, SigningError):
    """The private signing key is not configured."""
    pass


class MissingVerificationKeyError(ConfigurationError, VerificationError):
    """The public verification key is not configured."""
    pass


class TransportError(AntilopaySDKError):
    """
    Network/timeout failure, or an HTTP error reply without a processor
    result code.

    Attributes
    ----------
    status : Optional[int]
        HTTP status code, or None when no response was received.
    method, url : Optional[str]
        Best-effort request that triggered the error.
    """

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        method: Optional[str] = None,
        url: Optional[str] = None,
    ):
        self.status = status
        self.method = method
        self.url = url
        self.message_text = message
        dprint("TransportError", self.to_dict())
        super().__init__(self._message())

    @property
    def retryable(self) -> bool:
        """True for network faults and the usual transient statuses."""
        return self.status is None or self.status in (429, 500, 502, 503, 504)

    def _message(self) -> str:
        status = f"HTTP {self.status}" if self.status is not None else "network error"
        meth = f" {self.method}" if self.method else ""
        url = f" {self.url}" if self.url else ""
        return f"{status}{meth}{url}: {self.message_text}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "method": self.method,
            "url": self.url,
            "message": self.message_text,
            "retryable": self.retryable,
        }


class ApiError(AntilopaySDKError):
    """
    The processor rejected the request with a nonzero result code.

    Attributes
    ----------
    code : int
        Processor result code (never 0).
    message : str
        Processor error text (``error`` field), or a short preview of the body.
    payload : Any
        Parsed reply kept verbatim.
    status : Optional[int]
        HTTP status of the reply.
    """

    def __init__(
        self,
        code: int,
        message: str,
        *,
        payload: Any = None,
        status: Optional[int] = None,
        url: Optional[str] = None,
    ):
        self.code = int(code)
        self.message = message
        self.payload = payload
        self.status = status
        self.url = url

        dprint("ApiError", {"code": self.code, "status": self.status, "url": self.url})
        djson("ApiError payload", self.payload)

        super().__init__(self._message())

    @classmethod
    def from_payload(
        cls,
        payload: Dict[str, Any],
        *,
        status: Optional[int] = None,
        url: Optional[str] = None,
    ) -> "ApiError":
        return cls(
            int(payload["code"]),
            _message_text(payload),
            payload=payload,
            status=status,
            url=url,
        )

    def _message(self) -> str:
        url = f" {self.url}" if self.url else ""
        return f"code={self.code}{url}: {self.message}"

    def __repr__(self) -> str:
        return f"ApiError(code={self.code}, message={self.message!r}, status={self.status})"

    def to_dict(self) -> Dict[str, Any]:
        """Sanitized summary for logs/telemetry."""
        return {
            "code": self.code,
            "message": self.message,
            "status": self.status,
            "url": self.url,
        }


class ProtocolError(AntilopaySDKError):
    """The server reply does not match the documented response shape."""

    def __init__(self, message: str, *, payload: Any = None):
        self.payload = payload
        dprint("ProtocolError", message)
        super().__init__(message)


def _message_text(p: Any) -> str:
    """Human-friendly message guessed from a processor reply."""
    if isinstance(p, dict):
        for key in ("error", "message", "description"):
            val = p.get(key)
            if isinstance(val, str) and val.strip():
                return val.strip()
        try:
            s = json.dumps(p, ensure_ascii=False)
            return s if len(s) <= 240 else s[:237] + "..."
        except (TypeError, ValueError):
            return "error"
    return str(p)


__all__ = [
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
]
