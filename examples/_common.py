from __future__ import annotations
import argparse, json
from typing import Any
from antilopay import AntilopayConfig, AntilopayClient
from antilopay.debug import dprint, set_debug

def add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--base-url", default=None, help="Override ANTILOPAY_BASE_URL")
    p.add_argument("--project-id", default=None, help="Override ANTILOPAY_PROJECT_ID")
    p.add_argument("--secret-id", default=None, help="Override ANTILOPAY_SECRET_ID")
    p.add_argument("--secret-key-file", default=None, help="PEM file with the private signing key")
    p.add_argument("--public-key-file", default=None, help="PEM file with Antilopay's public key")
    p.add_argument("--sign-version", type=int, default=None, help="X-Apay-Sign-Version value")
    p.add_argument("--timeout", type=float, default=None, help="HTTP timeout seconds")
    p.add_argument("--debug", type=int, default=None, help="Set debug 1/0 (overrides ANTILOPAY_DEBUG)")

def _read(path):
    if not path:
        return None
    with open(path, "r", encoding="utf-8") as f:
        return f.read()

def make_config_from_args(args) -> AntilopayConfig:
    if args.debug is not None:
        set_debug(bool(args.debug))
    cfg = AntilopayConfig(
        project_id=args.project_id,
        secret_id=args.secret_id,
        secret_key=_read(args.secret_key_file),
        public_key=_read(args.public_key_file),
        base_url=args.base_url,
        sign_version=args.sign_version,
        timeout=args.timeout,
        debug=(None if args.debug is None else bool(args.debug)),
    )
    dprint("[COMMON] Config", cfg.masked())
    return cfg.validate()

def make_client_from_args(args) -> AntilopayClient:
    return AntilopayClient(make_config_from_args(args))

def pretty(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2, default=str)
