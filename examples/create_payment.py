from __future__ import annotations
import argparse, sys
from antilopay import PaymentsAPI, ApiError, TransportError, ProtocolError, make_order_id
from _common import add_common_args, make_client_from_args, pretty


def main():
    ap = argparse.ArgumentParser(description="Create an Antilopay payment (payment/create)")
    add_common_args(ap)
    ap.add_argument("--amount", required=True, help="Amount in RUB, e.g. 10 or 149.90")
    ap.add_argument("--order-id", default=None, help="Unique order id (generated if omitted)")
    ap.add_argument("--product", default="Test product", help="Product name")
    ap.add_argument("--description", default="Test payment", help="Payment description")
    ap.add_argument("--email", default=None, help="Customer email")
    ap.add_argument("--phone", default=None, help="Customer phone")
    ap.add_argument("--method", action="append", default=None, help="Preferred method (repeatable), e.g. SBP")
    ap.add_argument("--direct-nspk", action="store_true", help="Request direct NSPK settlement")
    args = ap.parse_args()

    with make_client_from_args(args) as client:
        try:
            resp = PaymentsAPI(client).create_payment_intent(
                amount=args.amount,
                order_id=args.order_id or make_order_id("cli"),
                product_name=args.product,
                description=args.description,
                customer={"email": args.email, "phone": args.phone},
                prefer_methods=args.method,
                params={"direct_nspk": True} if args.direct_nspk else None,
            )
        except ApiError as e:
            print("[PAYMENT] Rejected by Antilopay:", e)
            sys.exit(2)
        except (TransportError, ProtocolError) as e:
            print("[PAYMENT] Request failed:", e)
            sys.exit(1)

    print(pretty(resp.model_dump()))
    print("\n[PAYMENT] Pay here:", resp.payment_url)


if __name__ == "__main__":
    main()
