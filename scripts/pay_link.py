"""Open a payment link, generate its PIX, and show the live countdown."""

import argparse
import asyncio
from datetime import datetime

import httpx

from pixlink.common.state_machine import EXPIRED
from pixlink.services.checkout.expiry import ExpiryController


def _show(controller: ExpiryController) -> None:
    print(f"\rexpires in {controller.display}", end="", flush=True)


async def run(base_url: str, code: str, name: str, email: str, document: str) -> int:
    """Walk the payer flow for one link; return a process exit code."""

    controller = ExpiryController()
    async with httpx.AsyncClient(timeout=30.0) as client:
        link = await client.get(f"{base_url}/pagar/{code}")
        if link.status_code == 404:
            print("payment link invalid or expired")
            return 1
        link.raise_for_status()
        print(f"amount: R$ {link.json()['amount']}")

        resp = await client.post(
            f"{base_url}/checkout/pix",
            json={
                "link_code": code,
                "customer": {"name": name, "email": email, "document": document},
            },
        )
    if resp.status_code >= 400:
        detail = resp.json().get("detail", "payment could not be generated")
        controller.fail(str(detail))
        print(f"{detail} (retry to generate a new code)")
        return 2

    data = resp.json()
    controller.activate(data["pay_code"], datetime.fromisoformat(data["expires_at"].replace("Z", "+00:00")))
    print("pix copy-and-paste code:")
    print(controller.pay_code)
    state = await controller.run(_show)
    print()
    if state == EXPIRED:
        print("pix code expired, open the link again to generate a new one")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Pay a PIX link from the terminal.")
    parser.add_argument("code")
    parser.add_argument("--base-url", default="http://localhost:8000")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--document", required=True, help="CPF, formatting is stripped")
    args = parser.parse_args()
    try:
        raise SystemExit(asyncio.run(run(args.base_url, args.code, args.name, args.email, args.document)))
    except KeyboardInterrupt:
        print("\ncountdown stopped")


if __name__ == "__main__":
    main()
