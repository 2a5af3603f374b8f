from datetime import timedelta

from labgiga.models import Borrowing
from labgiga.utils.dates import isoformat, utcnow


def _payload(item, quantity=1, start=1, end=4, reason="Final project"):
    now = utcnow()
    return {
        "items": [{"itemId": item.id, "quantity": quantity}],
        "borrowDate": isoformat(now + timedelta(days=start)),
        "returnDate": isoformat(now + timedelta(days=end)),
        "reason": reason,
    }


def test_create_borrowing(client, member, auth_header, make_item):
    item = make_item(stock=3, total_stock=3)

    res = client.post("/borrowings", json=_payload(item, quantity=2), headers=auth_header(member))

    assert res.status_code == 201
    body = res.get_json()
    assert body["status"] == "PENDING"
    assert body["items"][0]["quantity"] == 2
    assert body["allowedTransitions"] == ["APPROVED", "REJECTED"]
    assert body["canRequestExtension"] is False
    # stock moves at pickup, not at request time
    assert item.stock == 3


def test_duplicate_lines_are_merged(client, member, auth_header, make_item):
    item = make_item(stock=5, total_stock=5)
    payload = _payload(item)
    payload["items"] = [{"itemId": item.id, "quantity": 1}, {"itemId": item.id, "quantity": 2}]

    res = client.post("/borrowings", json=payload, headers=auth_header(member))

    assert res.status_code == 201
    assert [line["quantity"] for line in res.get_json()["items"]] == [3]


def test_create_borrowing_validation(client, member, auth_header, make_item):
    item = make_item(stock=2, total_stock=2)
    headers = auth_header(member)

    res = client.post("/borrowings", json=_payload(item, start=4, end=2), headers=headers)
    assert (res.status_code, res.get_json()["error"]) == (400, "InvalidRange")

    res = client.post("/borrowings", json=_payload(item, start=-5, end=2), headers=headers)
    assert (res.status_code, res.get_json()["error"]) == (400, "InvalidRange")

    res = client.post("/borrowings", json=_payload(item, quantity=3), headers=headers)
    assert (res.status_code, res.get_json()["error"]) == (409, "InsufficientStock")

    res = client.post("/borrowings", json=_payload(item, quantity=0), headers=headers)
    assert (res.status_code, res.get_json()["error"]) == (400, "ValidationError")

    res = client.post("/borrowings", json=_payload(item, reason=""), headers=headers)
    assert (res.status_code, res.get_json()["error"]) == (400, "ValidationError")

    payload = _payload(item)
    payload["items"] = [{"itemId": 999, "quantity": 1}]
    res = client.post("/borrowings", json=payload, headers=headers)
    assert (res.status_code, res.get_json()["error"]) == (404, "NotFound")

    assert Borrowing.query.count() == 0


def test_fractional_quantity_is_rejected(client, member, auth_header, make_item):
    item = make_item(stock=3, total_stock=3)
    headers = auth_header(member)

    res = client.post("/borrowings", json=_payload(item, quantity=1.5), headers=headers)
    assert (res.status_code, res.get_json()["error"]) == (400, "ValidationError")

    res = client.post("/borrowings", json=_payload(item, quantity=True), headers=headers)
    assert res.status_code == 400
    assert Borrowing.query.count() == 0

    res = client.post("/borrowings", json=_payload(item, quantity="2"), headers=headers)
    assert res.status_code == 201
    assert res.get_json()["items"][0]["quantity"] == 2


def test_malformed_bodies_are_rejected(client, admin, member, auth_header, make_item, make_borrowing):
    item = make_item()
    b = make_borrowing([(item, 1)])

    res = client.post("/borrowings", json=[1, 2], headers=auth_header(member))
    assert (res.status_code, res.get_json()["error"]) == (400, "ValidationError")

    res = client.post("/borrowings", json=_payload(item, reason=123), headers=auth_header(member))
    assert (res.status_code, res.get_json()["error"]) == (400, "ValidationError")

    res = client.patch(f"/borrowings/{b.id}/status", json={"status": 1}, headers=auth_header(admin))
    assert (res.status_code, res.get_json()["error"]) == (400, "ValidationError")

    res = client.patch(f"/borrowings/{b.id}/status", json="APPROVED", headers=auth_header(admin))
    assert res.status_code == 400

    res = client.patch(f"/borrowings/{b.id}/status", json={"status": "APPROVED", "adminNotes": {"x": 1}},
                       headers=auth_header(admin))
    assert res.status_code == 400
    assert b.status == "PENDING"


def test_unavailable_item(client, member, auth_header, make_item):
    item = make_item(stock=2, total_stock=2, is_available=False)

    res = client.post("/borrowings", json=_payload(item), headers=auth_header(member))

    assert (res.status_code, res.get_json()["error"]) == (409, "InvalidState")


def test_borrowing_visibility(client, admin, member, other_member, auth_header, make_item, make_borrowing):
    item = make_item()
    mine = make_borrowing([(item, 1)])
    theirs = make_borrowing([(item, 1)], user=other_member)

    res = client.get("/borrowings/my", headers=auth_header(member))
    assert [b["id"] for b in res.get_json()] == [mine.id]

    assert client.get(f"/borrowings/{mine.id}", headers=auth_header(member)).status_code == 200
    assert client.get(f"/borrowings/{theirs.id}", headers=auth_header(member)).status_code == 403
    assert client.get(f"/borrowings/{theirs.id}", headers=auth_header(admin)).status_code == 200

    assert client.get("/borrowings", headers=auth_header(member)).status_code == 403
    res = client.get("/borrowings", headers=auth_header(admin))
    assert res.get_json()["meta"]["total"] == 2


def test_stats(client, admin, auth_header, make_item, make_borrowing):
    item = make_item(stock=3, total_stock=5)
    for status in ["PENDING", "PENDING", "BORROWED", "OVERDUE", "REJECTED"]:
        make_borrowing([(item, 1)], status=status)

    res = client.get("/borrowings/stats", headers=auth_header(admin))

    assert res.get_json() == {
        "total": 5,
        "pending": 2,
        "approved": 0,
        "borrowed": 1,
        "returned": 0,
        "rejected": 1,
        "overdue": 1,
    }


def test_health_and_unknown_route(client):
    assert client.get("/health").get_json() == {"ok": True}
    res = client.get("/nope")
    assert res.status_code == 404
    assert res.get_json()["success"] is False
