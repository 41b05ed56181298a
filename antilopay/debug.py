from __future__ import annotations
import os
import json
import datetime
from typing import Any, Dict, Mapping, Optional

# ------------------------------------------------------------------------------
# Debug flag (env overrideable) + runtime toggles
# ------------------------------------------------------------------------------
_DEBUG_ENABLED = os.getenv("ANTILOPAY_DEBUG", "0").lower() not in ("0", "false", "no", "off", "")

def is_enabled() -> bool:
    return _DEBUG_ENABLED

def set_debug(enabled: bool) -> None:
    """Enable/disable debug printing at runtime."""
    global _DEBUG_ENABLED
    _DEBUG_ENABLED = bool(enabled)

# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------
SENSITIVE_HEADER_KEYS = {"x-apay-sign", "x-apay-callback", "authorization"}
PARTIAL_MASK_KEYS = {"x-apay-secret-id"}  # identifies the account; keep a hint only

MAX_JSON_CHARS = int(os.getenv("ANTILOPAY_DEBUG_MAX_JSON", "50000"))  # cap printed JSON length

def _ts() -> str:
    # ISO 8601 UTC timestamp, e.g., 2025-09-13T10:20:30Z
    return datetime.datetime.now(datetime.timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")

def _mask_value(val: Optional[str]) -> Optional[str]:
    if val is None:
        return None
    if len(val) <= 6:
        return "***"
    return f"{val[:3]}...{val[-2:]}"

def redact_signature(value: Optional[str]) -> Optional[str]:
    """Show only the length of a signature value."""
    if not value:
        return value
    return f"***({len(value)} chars)"

def scrub_headers(h: Mapping[str, str]) -> Dict[str, str]:
    """Return a sanitized copy of headers for safe logging."""
    out: Dict[str, str] = {}
    for k, v in (h or {}).items():
        lk = k.lower()
        if lk in SENSITIVE_HEADER_KEYS:
            out[k] = redact_signature(v) or "***"
        elif lk in PARTIAL_MASK_KEYS:
            out[k] = _mask_value(v) or "***"
        else:
            out[k] = v
    return out

# ------------------------------------------------------------------------------
# Printing helpers
# ------------------------------------------------------------------------------
def dprint(*args: Any) -> None:
    if _DEBUG_ENABLED:
        print("[AntilopaySDK]", _ts(), *args, flush=True)

def djson(label: str, data: Any) -> None:
    if _DEBUG_ENABLED:
        try:
            s = json.dumps(data, ensure_ascii=False, indent=2, default=str)
        except Exception:
            s = repr(data)
        if len(s) > MAX_JSON_CHARS:
            s = s[:MAX_JSON_CHARS] + "... (truncated)"
        print("[AntilopaySDK]", _ts(), f"{label}:", s, flush=True)
