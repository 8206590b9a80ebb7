import re

from conftest import add_transaction


def _join(client, owner, member, outbox):
    client.post(
        f"/api/groups/{owner['group_id']}/invite",
        json={"email": member["user"]["email"]},
        headers=owner["headers"],
    )
    token = re.search(r"token=([0-9a-f]{64})", outbox[-1]["body"]).group(1)
    client.post(
        "/api/groups/accept-invite",
        json={"group_id": owner["group_id"], "token": token},
        headers=member["headers"],
    )


def test_create_transaction_records_author(client, alice):
    resp = add_transaction(client, alice["headers"], alice["group_id"], "2024-03-05", "despesa", "Mercado", 120.4, "feira")
    assert resp.status_code == 201
    tx = resp.json()["data"]
    assert tx["amount"] == 120.4
    assert tx["created_by"] == alice["user"]["id"]
    assert tx["created_by_name"] == "Alice"
    assert tx["description"] == "feira"


def test_amount_must_be_positive(client, alice):
    for amount in (0, -10):
        resp = add_transaction(client, alice["headers"], alice["group_id"], "2024-03-05", "despesa", "Mercado", amount)
        assert resp.status_code == 400


def test_description_is_limited_to_140_chars(client, alice):
    ok = add_transaction(client, alice["headers"], alice["group_id"], "2024-03-05", "despesa", "X", 1, "a" * 140)
    assert ok.status_code == 201
    too_long = add_transaction(client, alice["headers"], alice["group_id"], "2024-03-05", "despesa", "X", 1, "a" * 141)
    assert too_long.status_code == 400


def test_non_member_cannot_record_or_list(client, alice, bob):
    resp = add_transaction(client, bob["headers"], alice["group_id"], "2024-03-05", "despesa", "Mercado", 10)
    assert resp.status_code == 403
    assert client.get(f"/api/transactions/group/{alice['group_id']}", headers=bob["headers"]).status_code == 403
    missing = add_transaction(client, alice["headers"], 9999, "2024-03-05", "despesa", "Mercado", 10)
    assert missing.status_code == 404


def test_list_filters_by_inclusive_date_range(client, alice):
    for day in ("2024-02-29", "2024-03-01", "2024-03-15", "2024-03-31", "2024-04-01"):
        add_transaction(client, alice["headers"], alice["group_id"], day, "despesa", "Mercado", 10)

    resp = client.get(
        f"/api/transactions/group/{alice['group_id']}",
        params={"start_date": "2024-03-01", "end_date": "2024-03-31"},
        headers=alice["headers"],
    )
    assert [t["date"] for t in resp.json()["data"]] == ["2024-03-31", "2024-03-15", "2024-03-01"]

    everything = client.get(f"/api/transactions/group/{alice['group_id']}", headers=alice["headers"]).json()["data"]
    assert len(everything) == 5


def test_inverted_range_is_just_empty(client, alice):
    add_transaction(client, alice["headers"], alice["group_id"], "2024-03-15", "despesa", "Mercado", 10)
    resp = client.get(
        f"/api/transactions/group/{alice['group_id']}",
        params={"start_date": "2024-03-31", "end_date": "2024-03-01"},
        headers=alice["headers"],
    )
    assert resp.status_code == 200
    assert resp.json()["data"] == []


def test_only_the_author_updates_or_deletes(client, alice, bob, sent_emails):
    _join(client, alice, bob, sent_emails)
    tx = add_transaction(client, alice["headers"], alice["group_id"], "2024-03-05", "despesa", "Mercado", 100).json()["data"]

    # other members can read it
    assert client.get(f"/api/transactions/{tx['id']}", headers=bob["headers"]).status_code == 200
    assert client.put(f"/api/transactions/{tx['id']}", json={"amount": 1}, headers=bob["headers"]).status_code == 403
    assert client.delete(f"/api/transactions/{tx['id']}", headers=bob["headers"]).status_code == 403

    # not even the group admin may touch someone else's entry
    bob_tx = add_transaction(client, bob["headers"], alice["group_id"], "2024-03-06", "renda", "Freela", 300).json()["data"]
    assert client.delete(f"/api/transactions/{bob_tx['id']}", headers=alice["headers"]).status_code == 403


def test_partial_update(client, alice):
    tx = add_transaction(client, alice["headers"], alice["group_id"], "2024-03-05", "despesa", "Mercado", 100, "feira").json()["data"]

    resp = client.put(
        f"/api/transactions/{tx['id']}",
        json={"amount": 150.5, "category": "conta"},
        headers=alice["headers"],
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["amount"] == 150.5
    assert data["category"] == "conta"
    assert data["type"] == "Mercado"
    assert data["description"] == "feira"

    cleared = client.put(f"/api/transactions/{tx['id']}", json={"description": None}, headers=alice["headers"])
    assert cleared.json()["data"]["description"] is None

    assert client.put(f"/api/transactions/{tx['id']}", json={"amount": 0}, headers=alice["headers"]).status_code == 400


def test_delete_transaction(client, alice):
    tx = add_transaction(client, alice["headers"], alice["group_id"], "2024-03-05", "despesa", "Mercado", 100).json()["data"]
    assert client.delete(f"/api/transactions/{tx['id']}", headers=alice["headers"]).status_code == 200
    assert client.get(f"/api/transactions/{tx['id']}", headers=alice["headers"]).status_code == 404
