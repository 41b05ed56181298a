from __future__ import annotations

import os
import textwrap
from dataclasses import dataclass, field, replace
from typing import Optional, Dict, Any

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()


DEFAULT_BASE_URL = "https://api.antilopay.com/v1"
DEFAULT_SIGN_VERSION = 1
DEFAULT_SIGN_ALGORITHM = "RSA-SHA256"
DEFAULT_SIGN_ENCODING = "base64"

SUPPORTED_SIGN_ALGORITHMS = ("RSA-SHA256", "RSA-SHA384", "RSA-SHA512")
SUPPORTED_SIGN_ENCODINGS = ("base64", "hex")


# ----------------------------- helpers -----------------------------

def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    v = value.strip().lower()
    return v not in ("0", "false", "no", "off", "")


def _parse_float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value is not None else default
    except ValueError:
        return default


def _parse_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _normalize_base_url(url: Optional[str]) -> str:
    url = (url or "").strip()
    if not url:
        return DEFAULT_BASE_URL
    # Remove trailing slash to avoid double slashes when building paths
    return url.rstrip("/")


def _normalize_pem(value: Optional[str], kind: str) -> str:
    """
    Accept PEM text as pasted into env files: literal ``\\n`` escapes are
    unescaped and a bare base64 body gets its armor back.
    """
    v = (value or "").strip()
    if not v:
        return ""
    v = v.replace("\\n", "\n")
    if "-----BEGIN" in v:
        return v.strip() + "\n"
    body = "".join(v.split())
    label = "PRIVATE KEY" if kind == "private" else "PUBLIC KEY"
    return f"-----BEGIN {label}-----\n" + "\n".join(textwrap.wrap(body, 64)) + f"\n-----END {label}-----\n"


def _mask(token: Optional[str], kind: str) -> str:
    """Mask sensitive values for debug printing."""
    if not token:
        return "(empty)"
    if kind == "id":
        t = token.strip()
        if len(t) <= 6:
            return "***"
        return t[:3] + "..." + t[-2:]
    if kind == "pem":
        # Never show key material; the length is enough to tell keys apart
        return f"(pem, {len(token)} chars)"
    return "***"


def _dprint(enabled: bool, *args: Any) -> None:
    if enabled:
        print("[AntilopaySDK][Config]", *args)


# ----------------------------- config -----------------------------

@dataclass
class AntilopayConfig:
    """
    Credentials and runtime knobs, with precedence:
      explicit kwargs > environment (.env) > defaults

    Build one per process and pass it to AntilopayClient / WebhookVerifier.
    Reconfiguration (set_base_url, set_sign_version) must not race with
    in-flight signing; serialize it on the caller side.
    """

    # Credentials
    project_id: Optional[str] = None
    secret_id: Optional[str] = None
    secret_key: Optional[str] = None   # PEM private key, signs outbound requests
    public_key: Optional[str] = None   # PEM public key, verifies inbound notifications

    # Routing / signing
    base_url: Optional[str] = None
    sign_version: Optional[int] = None
    sign_algorithm: Optional[str] = None
    sign_encoding: Optional[str] = None

    # Network
    timeout: Optional[float] = None

    # Diagnostics
    debug: Optional[bool] = None

    # Internal: where each field was sourced from (arg/env/default) for debugging
    _source: Dict[str, str] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        env = os.environ

        for name, env_name in (
            ("project_id", "ANTILOPAY_PROJECT_ID"),
            ("secret_id", "ANTILOPAY_SECRET_ID"),
        ):
            if getattr(self, name) in (None, ""):
                setattr(self, name, env.get(env_name, "").strip())
                self._source[name] = "env"
            else:
                self._source[name] = "arg"

        # keys
        if self.secret_key in (None, ""):
            self.secret_key = _normalize_pem(env.get("ANTILOPAY_SECRET_KEY"), "private")
            self._source["secret_key"] = "env"
        else:
            self.secret_key = _normalize_pem(self.secret_key, "private")
            self._source["secret_key"] = "arg"

        if self.public_key in (None, ""):
            self.public_key = _normalize_pem(env.get("ANTILOPAY_PUBLIC_KEY"), "public")
            self._source["public_key"] = "env"
        else:
            self.public_key = _normalize_pem(self.public_key, "public")
            self._source["public_key"] = "arg"

        # base_url
        if self.base_url in (None, ""):
            self.base_url = _normalize_base_url(env.get("ANTILOPAY_BASE_URL"))
            self._source["base_url"] = "env/default"
        else:
            self.base_url = _normalize_base_url(self.base_url)
            self._source["base_url"] = "arg"

        # sign_version
        if self.sign_version is None:
            self.sign_version = _parse_int(env.get("ANTILOPAY_SIGN_VERSION"), DEFAULT_SIGN_VERSION)
            self._source["sign_version"] = "env/default"
        else:
            self._source["sign_version"] = "arg"

        # sign_algorithm / sign_encoding
        if not self.sign_algorithm:
            self.sign_algorithm = env.get("ANTILOPAY_SIGN_ALGORITHM") or DEFAULT_SIGN_ALGORITHM
            self._source["sign_algorithm"] = "env/default"
        else:
            self._source["sign_algorithm"] = "arg"
        self.sign_algorithm = self.sign_algorithm.strip().upper()

        if not self.sign_encoding:
            self.sign_encoding = env.get("ANTILOPAY_SIGN_ENCODING") or DEFAULT_SIGN_ENCODING
            self._source["sign_encoding"] = "env/default"
        else:
            self._source["sign_encoding"] = "arg"
        self.sign_encoding = self.sign_encoding.strip().lower()

        # timeout
        if self.timeout is None:
            self.timeout = _parse_float(env.get("ANTILOPAY_TIMEOUT"), 30.0)
            self._source["timeout"] = "env/default"
        else:
            self.timeout = float(self.timeout)
            self._source["timeout"] = "arg"

        # debug
        if self.debug is None:
            self.debug = _parse_bool(env.get("ANTILOPAY_DEBUG"), False)
            self._source["debug"] = "env/default"
        else:
            self.debug = bool(self.debug)
            self._source["debug"] = "arg"

        # Initial debug print (sanitized)
        _dprint(bool(self.debug), "Loaded config:", {**self.masked(), "source": self._source})

    # -------- validation & utils --------
    def validate(self) -> "AntilopayConfig":
        """
        Check that all four credentials are present and the signing knobs
        are usable. Raises ConfigurationError; returns self for chaining.
        """
        missing = [
            name
            for name in ("project_id", "secret_id", "secret_key", "public_key")
            if not getattr(self, name)
        ]
        if missing:
            _dprint(bool(self.debug), "Validation failed: missing", missing)
            raise ConfigurationError(
                "Antilopay credentials missing: " + ", ".join(missing)
                + " (set them explicitly or via ANTILOPAY_* environment variables)."
            )
        if not isinstance(self.sign_version, int) or self.sign_version < 1:
            raise ConfigurationError("sign_version must be a positive integer.")
        if self.sign_algorithm not in SUPPORTED_SIGN_ALGORITHMS:
            raise ConfigurationError(
                f"unsupported sign_algorithm {self.sign_algorithm!r}; "
                f"expected one of {', '.join(SUPPORTED_SIGN_ALGORITHMS)}."
            )
        if self.sign_encoding not in SUPPORTED_SIGN_ENCODINGS:
            raise ConfigurationError(
                f"unsupported sign_encoding {self.sign_encoding!r}; "
                f"expected one of {', '.join(SUPPORTED_SIGN_ENCODINGS)}."
            )
        _dprint(bool(self.debug), "Validation OK")
        return self

    def set_base_url(self, url: str) -> None:
        """Point subsequent requests at another API root."""
        if not isinstance(url, str) or not url.strip():
            raise ConfigurationError("base_url must be a non-empty string.")
        self.base_url = _normalize_base_url(url)
        self._source["base_url"] = "set"
        _dprint(bool(self.debug), "base_url ->", self.base_url)

    def set_sign_version(self, version: int) -> None:
        """Change the value sent in X-Apay-Sign-Version."""
        if isinstance(version, bool) or not isinstance(version, int) or version < 1:
            raise ConfigurationError("sign_version must be a positive integer.")
        self.sign_version = version
        self._source["sign_version"] = "set"
        _dprint(bool(self.debug), "sign_version ->", self.sign_version)

    def masked(self) -> dict:
        """Return a sanitized dict for logging/diagnostics."""
        return {
            "project_id": _mask(self.project_id, "id"),
            "secret_id": _mask(self.secret_id, "id"),
            "secret_key": _mask(self.secret_key, "pem"),
            "public_key": _mask(self.public_key, "pem"),
            "base_url": self.base_url,
            "sign_version": self.sign_version,
            "sign_algorithm": self.sign_algorithm,
            "sign_encoding": self.sign_encoding,
            "timeout": self.timeout,
            "debug": self.debug,
        }

    def copy_with(
        self,
        *,
        project_id: Optional[str] = None,
        secret_id: Optional[str] = None,
        secret_key: Optional[str] = None,
        public_key: Optional[str] = None,
        base_url: Optional[str] = None,
        sign_version: Optional[int] = None,
        sign_algorithm: Optional[str] = None,
        sign_encoding: Optional[str] = None,
        timeout: Optional[float] = None,
        debug: Optional[bool] = None,
    ) -> "AntilopayConfig":
        """Create a modified copy (handy in tests)."""
        return replace(
            self,
            project_id=self.project_id if project_id is None else project_id,
            secret_id=self.secret_id if secret_id is None else secret_id,
            secret_key=self.secret_key if secret_key is None else secret_key,
            public_key=self.public_key if public_key is None else public_key,
            base_url=self.base_url if base_url is None else base_url,
            sign_version=self.sign_version if sign_version is None else sign_version,
            sign_algorithm=self.sign_algorithm if sign_algorithm is None else sign_algorithm,
            sign_encoding=self.sign_encoding if sign_encoding is None else sign_encoding,
            timeout=self.timeout if timeout is None else float(timeout),
            debug=self.debug if debug is None else bool(debug),
        )

    # -------- alt constructors --------
    @classmethod
    def from_env(cls) -> "AntilopayConfig":
        """Build config strictly from environment (.env considered if loaded)."""
        return cls().validate()


# ----------------------------- process default -----------------------------

_default_config: Optional[AntilopayConfig] = None


def get_config() -> AntilopayConfig:
    """
    Return the process-wide default config, building it from the environment
    on first use. The SDK never reads it implicitly; pass it where needed.
    """
    global _default_config
    if _default_config is None:
        _default_config = AntilopayConfig.from_env()
    return _default_config


def set_config(config: Optional[AntilopayConfig]) -> None:
    """Install (or with None, drop) the process-wide default config."""
    global _default_config
    _default_config = config.validate() if config is not None else None


__all__ = ["AntilopayConfig", "get_config", "set_config", "DEFAULT_BASE_URL"]
