from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import httpx

from .auth import AuthHeaderBuilder
from .config import AntilopayConfig
from .debug import dprint, djson, scrub_headers
from .errors import ApiError, ProtocolError, TransportError
from .signing import SignatureEngine

try:
    # __version__ is defined in antilopay/__init__.py
    from . import __version__ as SDK_VERSION  # type: ignore
except ImportError:
    SDK_VERSION = "0.0.0"


def _result_code(body: Mapping[str, Any]) -> Optional[int]:
    """The processor's numeric result code, None when absent."""
    code = body.get("code")
    if code is None:
        return None
    if isinstance(code, bool):
        raise ProtocolError(f"result code must be numeric, got {code!r}", payload=dict(body))
    try:
        return int(code)
    except (TypeError, ValueError):
        raise ProtocolError(f"result code must be numeric, got {code!r}", payload=dict(body)) from None


class AntilopayClient:
    """
    Lightweight sync client for the Antilopay REST API.

    - Serializes every body canonically and signs those exact bytes.
    - Adds X-Apay-Secret-Id / X-Apay-Sign-Version / X-Apay-Sign headers.
    - No retries: network faults surface as TransportError for the caller's
      own retry policy.
    - Prints sanitized debug logs (signature redacted).
    """

    def __init__(
        self,
        config: AntilopayConfig,
        *,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.config = config.validate()
        self.signer = SignatureEngine(self.config)
        self.auth = AuthHeaderBuilder(self.config, self.signer)

        # No base_url on the httpx client: config.base_url is read per request
        # so set_base_url() applies to the next call.
        self._client = httpx.Client(
            timeout=self.config.timeout,
            transport=transport,
            headers={
                "User-Agent": f"antilopay-python/{SDK_VERSION}",
            },
        )
        dprint(
            "Client init",
            {
                "base_url": self.config.base_url,
                "timeout": self.config.timeout,
                "sign_version": self.config.sign_version,
                "sdk_version": SDK_VERSION,
            },
        )

    # ------------ context manager support ------------
    def __enter__(self) -> "AntilopayClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------ internal helpers ------------
    def _url(self, resource_path: str) -> str:
        return f"{self.config.base_url}/{resource_path.lstrip('/')}"

    def _headers(self, body: bytes) -> Dict[str, str]:
        h: Dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        h.update(self.auth.build_for_body(body))
        djson("Request headers", scrub_headers(h))
        return h

    def _handle(self, r: httpx.Response, url: str) -> Dict[str, Any]:
        dprint("Response", {"status": r.status_code, "url": url})
        ok = 200 <= r.status_code < 300

        try:
            body = r.json() if r.content else None
        except ValueError:
            body = None

        if not isinstance(body, dict):
            if ok:
                raise ProtocolError(
                    f"expected a JSON object from {url}, got {r.text[:120]!r}",
                    payload=r.text,
                )
            raise TransportError(r.text[:240] or r.reason_phrase, status=r.status_code, method="POST", url=url)

        djson("Response body", body)

        code = _result_code(body)
        if code:
            raise ApiError.from_payload(body, status=r.status_code, url=url)
        if not ok:
            raise TransportError(
                str(body.get("error") or body.get("message") or r.reason_phrase),
                status=r.status_code,
                method="POST",
                url=url,
            )
        return body

    # ------------ public request helpers ------------
    def post(self, resource_path: str, *, json: Mapping[str, Any]) -> Dict[str, Any]:
        """
        POST ``json`` to ``resource_path`` and return the decoded reply.

        Raises SigningError, TransportError, ApiError or ProtocolError.
        """
        url = self._url(resource_path)
        body = self.signer.serialize(json)
        headers = self._headers(body)
        dprint("POST", {"url": url, "bytes": len(body)})
        djson("Request JSON", json)
        try:
            r = self._client.post(url, content=body, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(str(e) or type(e).__name__, method="POST", url=url) from e
        return self._handle(r, url)

    def close(self) -> None:
        dprint("Client close()")
        self._client.close()
