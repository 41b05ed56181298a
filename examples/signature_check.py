from __future__ import annotations
import argparse, sys
from antilopay import SignatureAPI
from _common import add_common_args, make_client_from_args


def main():
    ap = argparse.ArgumentParser(description="Ask Antilopay to verify our request signature")
    add_common_args(ap)
    args = ap.parse_args()

    with make_client_from_args(args) as client:
        ok = SignatureAPI(client).check()

    print("[SIGNATURE] OK ✅" if ok else "[SIGNATURE] Invalid signature ❌")
    sys.exit(0 if ok else 2)


if __name__ == "__main__":
    main()
