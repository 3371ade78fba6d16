#!/usr/bin/env python3
"""
Demo seed script — populates a running server with sample card data.

!! NOT FOR PRODUCTION !!
Creates a peso checking account, a dollar checking account and a credit
card closing on the 20th, then fills the card with a few months of
expenses in both currencies, an installment purchase and a stamp duty
line so every statement state shows up.

Usage:
    # With the API server running on localhost:8000:
    python demo/seed.py

    # Reset the database and re-seed:
    python demo/seed.py --reset

    # Custom server URL:
    python demo/seed.py --base-url http://localhost:9000
"""

import argparse
import asyncio
import os
import random
from datetime import date, timedelta

import httpx

BASE_URL = "http://localhost:8000"

ACCOUNTS = [
    {"name": "Checking ARS", "account_type": "checking", "currency": "ARS",
     "initial_balance_cents": 2_500_000_00},
    {"name": "Checking USD", "account_type": "checking", "currency": "USD",
     "initial_balance_cents": 3_000_00},
    {"name": "Visa", "account_type": "credit_card", "currency": "ARS", "closing_day": 20},
]

PESO_CATEGORIES = ["Groceries", "Restaurant", "Fuel", "Pharmacy", "Clothing"]
DOLLAR_CATEGORIES = ["Streaming", "Cloud storage", "Online course"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def log(msg: str) -> None:
    print(f"  {msg}")


def cents(amount: int) -> str:
    return f"{amount / 100:,.2f}"


async def create_account(client: httpx.AsyncClient, body: dict) -> dict:
    resp = await client.post(f"{BASE_URL}/accounts", json=body)
    resp.raise_for_status()
    return resp.json()


async def add_expense(client: httpx.AsyncClient, account_id: str, body: dict) -> dict:
    resp = await client.post(f"{BASE_URL}/accounts/{account_id}/expenses", json=body)
    resp.raise_for_status()
    return resp.json()


async def seed_card_history(client: httpx.AsyncClient, card_id: str, months: int = 4) -> int:
    """Random expenses spread over the last `months` months, both currencies."""
    start = date.today() - timedelta(days=30 * months)
    count = 0
    for offset in range(0, 30 * months, 3):
        day = (start + timedelta(days=offset)).isoformat()
        if random.random() < 0.25:
            body = {
                "date": day,
                "secondary_amount_cents": random.randint(5_00, 40_00),
                "category_label": random.choice(DOLLAR_CATEGORIES),
            }
        else:
            body = {
                "date": day,
                "amount_cents": random.randint(2_000_00, 60_000_00),
                "category_label": random.choice(PESO_CATEGORIES),
            }
        await add_expense(client, card_id, body)
        count += 1
    return count


async def seed(base_url: str) -> None:
    global BASE_URL
    BASE_URL = base_url

    async with httpx.AsyncClient(timeout=30) as client:
        print("\n--- Accounts ---")
        created = {}
        for body in ACCOUNTS:
            account = await create_account(client, body)
            created[body["name"]] = account
            log(f"{account['name']:<14s} {account['currency']}  id={account['id']}")

        card_id = created["Visa"]["id"]

        print("\n--- Card expenses ---")
        count = await seed_card_history(client, card_id)
        log(f"{count} expenses")

        resp = await client.post(
            f"{BASE_URL}/accounts/{card_id}/installment-purchases",
            json={
                "description": "Notebook",
                "total_amount_cents": 1_200_000_00,
                "installments": 6,
                "start_date": (date.today() - timedelta(days=60)).isoformat(),
                "category_label": "Technology",
            },
        )
        resp.raise_for_status()
        log("Installment purchase: Notebook, 6 installments")

        print("\n--- Statements ---")
        resp = await client.get(f"{BASE_URL}/accounts/{card_id}/statements")
        resp.raise_for_status()
        statements = resp.json()

        past = [s for s in statements if s["lifecycle_state"] == "past"]
        if past:
            oldest = past[0]
            resp = await client.post(
                f"{BASE_URL}/accounts/{card_id}/statements/{oldest['period_key']}/tax",
                json={"amount_cents": 8_500_00},
            )
            resp.raise_for_status()
            resp = await client.post(
                f"{BASE_URL}/accounts/{card_id}/statements/{oldest['period_key']}/payment",
                json={"currency": "primary", "from_account_id": created["Checking ARS"]["id"]},
            )
            resp.raise_for_status()
            log(f"Stamp duty added and {oldest['label']} paid")

        resp = await client.get(f"{BASE_URL}/accounts/{card_id}/statements")
        for s in resp.json():
            log(
                f"{s['period_key']}  {s['lifecycle_state']:<8s} "
                f"ARS {cents(s['total_primary_cents']):>14s}  "
                f"USD {cents(s['total_secondary_cents']):>9s}  ({s['item_count']} items)"
            )
    print()


def reset_database() -> None:
    """Delete the SQLite database file so the server recreates it on restart."""
    db_path = os.path.join(os.path.dirname(__file__), "..", "data", "finance.db")
    db_path = os.path.normpath(db_path)

    if os.path.exists(db_path):
        os.remove(db_path)
        print(f"\n  Deleted {db_path}")
        print("  Restart the server to recreate empty tables.\n")
    else:
        print(f"\n  No database found at {db_path}\n")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Demo seed script — NOT FOR PRODUCTION",
        epilog="Creates sample accounts, card expenses and statements for demos.",
    )
    parser.add_argument(
        "--base-url", default="http://localhost:8000",
        help="Base URL of the running API (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--reset", action="store_true",
        help="Delete the database file and exit (restart server to recreate)",
    )
    args = parser.parse_args()

    if args.reset:
        reset_database()
        return

    await seed(args.base_url)


if __name__ == "__main__":
    asyncio.run(main())
