from __future__ import annotations
from typing import Any, Dict, Mapping, Optional

from ..client import AntilopayClient
from ..debug import dprint
from ..errors import ApiError, ProtocolError


CHECK_PATH = "/signature/check"

# Antilopay result code for "signature is invalid"
INVALID_SIGNATURE_CODE = 3


class SignatureAPI:
    """
    Round-trip check of the request signature (signature/check).

    Useful right after key rotation: Antilopay verifies the signature of an
    arbitrary body and reports whether it matched.
    """

    def __init__(self, client: AntilopayClient):
        self.client = client

    def check(self, payload: Optional[Mapping[str, Any]] = None) -> bool:
        """
        True when Antilopay accepts the signature, False on code 3.
        Other result codes raise ApiError.
        """
        body: Dict[str, Any] = dict(payload) if payload is not None else {
            "project_identificator": self.client.config.project_id,
        }
        try:
            resp = self.client.post(CHECK_PATH, json=body)
        except ApiError as e:
            if e.code == INVALID_SIGNATURE_CODE:
                dprint("signature.check() rejected", {"message": e.message})
                return False
            raise

        if str(resp.get("status", "")).lower() != "ok":
            raise ProtocolError(f"unexpected signature/check reply: {resp!r}", payload=resp)
        dprint("signature.check() ok")
        return True
