from __future__ import annotations
import argparse, sys
from antilopay import WebhookVerifier
from _common import add_common_args, make_config_from_args, pretty


def main():
    ap = argparse.ArgumentParser(
        description="Verify an Antilopay callback signature & parse payload (offline sample)"
    )
    add_common_args(ap)
    ap.add_argument("--signature", required=True, help="X-Apay-Callback header value")
    ap.add_argument("--file", required=True, help="Path to the raw JSON body to verify/parse")
    args = ap.parse_args()

    with open(args.file, "rb") as f:
        body = f.read()

    outcome = WebhookVerifier(make_config_from_args(args)).verify(body, args.signature)
    if not outcome.accepted:
        print("[WEBHOOK] Rejected:", outcome.reason)
        sys.exit(2)

    print(pretty(outcome.notification.model_dump(mode="json")))
    print("\n[WEBHOOK] OK ✅")


if __name__ == "__main__":
    main()
