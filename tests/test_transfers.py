"""
Tests for the transfer endpoint.

These tests verify:
  - Transfers record both legs and affect computed balances
  - Same-account and non-positive transfers are rejected by validation
  - Unknown accounts are reported as 404
"""

import uuid


class TestTransfers:

    async def test_transfer_between_accounts(self, client, checking, card):
        response = await client.post(
            "/transfers",
            json={
                "from_account_id": checking["id"],
                "to_account_id": card["id"],
                "amount_cents": 12_345,
                "transfer_date": "2025-02-20",
                "note": "Card payment",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["currency"] == "ARS"
        assert data["date"] == "2025-02-20"
        assert data["statement_period"] is None

        card_balance = (await client.get(f"/accounts/{card['id']}/balance")).json()
        assert card_balance["transfers_in_cents"] == 12_345
        assert card_balance["balance_cents"] == 12_345

    async def test_same_account_rejected(self, client, checking):
        response = await client.post(
            "/transfers",
            json={
                "from_account_id": checking["id"],
                "to_account_id": checking["id"],
                "amount_cents": 100,
            },
        )
        assert response.status_code == 422

    async def test_non_positive_amount_rejected(self, client, checking, card):
        response = await client.post(
            "/transfers",
            json={
                "from_account_id": checking["id"],
                "to_account_id": card["id"],
                "amount_cents": 0,
            },
        )
        assert response.status_code == 422

    async def test_unknown_destination(self, client, checking):
        response = await client.post(
            "/transfers",
            json={
                "from_account_id": checking["id"],
                "to_account_id": str(uuid.uuid4()),
                "amount_cents": 100,
            },
        )
        assert response.status_code == 404

    async def test_foreign_currency_transfer_not_in_balance(self, client, usd_checking, card):
        await client.post(
            "/transfers",
            json={
                "from_account_id": usd_checking["id"],
                "to_account_id": card["id"],
                "amount_cents": 500,
            },
        )

        card_balance = (await client.get(f"/accounts/{card['id']}/balance")).json()
        assert card_balance["balance_cents"] == 0
