"""End-to-end household flows across several endpoints."""

import re

from conftest import add_item, add_transaction, open_budget, register


def test_family_month_to_month(client, sent_emails):
    ana = register(client, "Ana", "ana@example.com")
    bruno = register(client, "Bruno", "bruno@example.com")
    outsider = register(client, "Caio", "caio@example.com")

    family = client.post("/api/groups", json={"name": "Família"}, headers=ana["headers"]).json()["data"]
    client.post(f"/api/groups/{family['id']}/invite", json={"email": "bruno@example.com"}, headers=ana["headers"])
    token = re.search(r"token=([0-9a-f]{64})", sent_emails[-1]["body"]).group(1)
    joined = client.post(
        "/api/groups/accept-invite",
        json={"group_id": family["id"], "token": token},
        headers=bruno["headers"],
    )
    assert joined.status_code == 200

    march = open_budget(client, ana["headers"], family["id"], "2024-03-01", "2024-03-31").json()["data"]
    add_item(client, ana["headers"], march["id"], family["id"], "despesa", "Aluguel", 1200)

    april = open_budget(client, bruno["headers"], family["id"], "2024-04-01", "2024-04-30")
    assert april.status_code == 201
    april_id = april.json()["data"]["id"]
    assert april.json()["data"]["cloned_items"] == 1

    add_transaction(client, bruno["headers"], family["id"], "2024-04-05", "despesa", "Aluguel", 1200)

    summary = client.get(f"/api/budgets/{april_id}/summary", headers=ana["headers"]).json()["data"]
    assert summary["categories"]["despesa"] == {"planned": 1200.0, "actual": 1200.0, "difference": 0.0}

    # March only sees March transactions
    march_summary = client.get(f"/api/budgets/{march['id']}/summary", headers=ana["headers"]).json()["data"]
    assert march_summary["categories"]["despesa"]["actual"] == 0.0

    assert client.get(f"/api/budgets/{april_id}/summary", headers=outsider["headers"]).status_code == 403

    actions = [
        e["action_type"]
        for e in client.get(f"/api/activities/group/{family['id']}", headers=ana["headers"]).json()["data"]
    ]
    assert actions[:3] == ["transaction_created", "budget_created", "budget_item_created"]
    assert "member_joined" in actions
    assert "member_invited" in actions
