"""Mint a shareable payment link through the merchant API and print it."""

import argparse
import json

import httpx


def main() -> None:
    """CLI entrypoint for link creation."""

    parser = argparse.ArgumentParser(description="Create a PIX payment link.")
    parser.add_argument("amount", help="Amount in currency units, e.g. 150.00")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--api-key", required=True)
    parser.add_argument("--description")
    parser.add_argument("--owner-id", help="Vendor whose gateway keys should receive the payment")
    args = parser.parse_args()

    payload = {"amount": args.amount, "description": args.description, "owner_id": args.owner_id}
    resp = httpx.post(
        f"{args.base_url}/links",
        json=payload,
        headers={"x-api-key": args.api_key},
        timeout=10.0,
    )
    resp.raise_for_status()
    print(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    main()
