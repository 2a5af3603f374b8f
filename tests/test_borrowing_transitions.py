from smtplib import SMTPException
from unittest import mock

import pytest

from labgiga.errors import Conflict, Forbidden, InsufficientStock, InvalidTransition, NotFound
from labgiga.extensions import db, mail
from labgiga.models import Item, NotificationLog
from labgiga.models.status import BORROWING_TRANSITIONS, BorrowingStatus
from labgiga.repositories.borrowing_repo import BorrowingRepo
from labgiga.services.borrowing_service import BorrowingService

ALL_PAIRS = [(src, dst) for src in BorrowingStatus for dst in BorrowingStatus]


def _stock(item_id):
    return db.session.get(Item, item_id).stock


@pytest.mark.parametrize("src,dst", ALL_PAIRS, ids=[f"{s.value}->{d.value}" for s, d in ALL_PAIRS])
def test_only_table_transitions_are_accepted(make_item, make_borrowing, src, dst):
    holding = src in (BorrowingStatus.BORROWED, BorrowingStatus.OVERDUE)
    item = make_item(stock=4 if holding else 5, total_stock=5)
    b = make_borrowing([(item, 1)], status=src.value)

    if dst in BORROWING_TRANSITIONS[src]:
        BorrowingService.transition(b.id, dst.value, "ADMIN")
        assert b.status == dst.value
    else:
        with pytest.raises(InvalidTransition):
            BorrowingService.transition(b.id, dst.value, "ADMIN")
        assert b.status == src.value

    assert 0 <= _stock(item.id) <= 5


def test_unknown_target_status_is_invalid(make_item, make_borrowing):
    b = make_borrowing([(make_item(), 1)])
    with pytest.raises(InvalidTransition):
        BorrowingService.transition(b.id, "LOST", "ADMIN")


def test_non_admin_cannot_transition(make_item, make_borrowing):
    b = make_borrowing([(make_item(), 1)])
    with pytest.raises(Forbidden):
        BorrowingService.transition(b.id, "APPROVED", "USER")
    assert b.status == "PENDING"


def test_missing_borrowing(app):
    with pytest.raises(NotFound):
        BorrowingService.transition(999, "APPROVED", "ADMIN")


def test_pickup_decrements_each_line(make_item, make_borrowing):
    scope = make_item("Oscilloscope", stock=5, total_stock=5)
    analyzer = make_item("Logic analyzer", stock=3, total_stock=4)
    b = make_borrowing([(scope, 2), (analyzer, 3)], status="APPROVED")

    BorrowingService.transition(b.id, "BORROWED", "ADMIN")

    assert b.status == "BORROWED"
    assert _stock(scope.id) == 3
    assert _stock(analyzer.id) == 0


def test_pickup_with_insufficient_stock_changes_nothing(make_item, make_borrowing):
    scope = make_item("Oscilloscope", stock=5, total_stock=5)
    analyzer = make_item("Logic analyzer", stock=1, total_stock=4)
    b = make_borrowing([(scope, 2), (analyzer, 2)], status="APPROVED")

    with pytest.raises(InsufficientStock):
        BorrowingService.transition(b.id, "BORROWED", "ADMIN")

    assert b.status == "APPROVED"
    assert _stock(scope.id) == 5
    assert _stock(analyzer.id) == 1


def test_second_pickup_on_same_item_runs_out_of_stock(make_item, make_borrowing):
    item = make_item(stock=5, total_stock=5)
    first = make_borrowing([(item, 3)], status="APPROVED")
    second = make_borrowing([(item, 3)], status="APPROVED")

    BorrowingService.transition(first.id, "BORROWED", "ADMIN")
    with pytest.raises(InsufficientStock):
        BorrowingService.transition(second.id, "BORROWED", "ADMIN")

    assert _stock(item.id) == 2
    assert second.status == "APPROVED"


def test_return_releases_items(make_item, make_borrowing):
    item = make_item(stock=2, total_stock=5)
    b = make_borrowing([(item, 3)], status="BORROWED")

    BorrowingService.transition(b.id, "RETURNED", "ADMIN")

    assert b.status == "RETURNED"
    assert _stock(item.id) == 5
    assert b.actual_return_date is not None


def test_pickup_then_return_restores_stock(make_item, make_borrowing):
    item = make_item(stock=4, total_stock=6)
    b = make_borrowing([(item, 3)], status="APPROVED")

    BorrowingService.transition(b.id, "BORROWED", "ADMIN")
    assert _stock(item.id) == 1
    BorrowingService.transition(b.id, "OVERDUE", "ADMIN")
    BorrowingService.transition(b.id, "RETURNED", "ADMIN")

    assert _stock(item.id) == 4


def test_return_never_exceeds_total_stock(make_item, make_borrowing):
    item = make_item(stock=4, total_stock=5)
    b = make_borrowing([(item, 3)], status="BORROWED")

    BorrowingService.transition(b.id, "RETURNED", "ADMIN")

    assert _stock(item.id) == 5


def test_rejection_notes_go_to_rejection_reason(make_item, make_borrowing):
    item = make_item(stock=5, total_stock=5)
    b = make_borrowing([(item, 2)])

    BorrowingService.transition(b.id, "REJECTED", "ADMIN", "Lab closed that week")

    assert b.rejection_reason == "Lab closed that week"
    assert b.admin_notes is None
    assert _stock(item.id) == 5


def test_other_notes_go_to_admin_notes(make_item, make_borrowing):
    b = make_borrowing([(make_item(), 1)])

    BorrowingService.transition(b.id, "APPROVED", "ADMIN", "Pick up at room 101")

    assert b.admin_notes == "Pick up at room 101"
    assert b.rejection_reason is None


def test_stale_read_gets_conflict(make_item, make_borrowing):
    b = make_borrowing([(make_item(), 1)])
    BorrowingService.transition(b.id, "APPROVED", "ADMIN")

    # second admin still sees PENDING when deciding
    with mock.patch.object(BorrowingRepo, "get_status", return_value="PENDING"):
        with pytest.raises(Conflict):
            BorrowingService.transition(b.id, "APPROVED", "ADMIN", "late click")

    assert b.status == "APPROVED"
    assert b.admin_notes is None


def test_transition_notifies_owner(make_item, make_borrowing, member):
    b = make_borrowing([(make_item(), 1)])

    BorrowingService.transition(b.id, "APPROVED", "ADMIN")

    logs = NotificationLog.query.filter_by(borrowing_id=b.id).all()
    assert len(logs) == 1
    assert logs[0].type == "borrowing_status"
    assert logs[0].email == member.email
    assert logs[0].success is True


def test_notice_mail_format(app, make_item, make_borrowing, member):
    b = make_borrowing([(make_item(), 1)])

    with mail.record_messages() as outbox:
        BorrowingService.transition(b.id, "REJECTED", "ADMIN", "Not lab related")

    assert len(outbox) == 1
    msg = outbox[0]
    assert msg.subject == f"[Lab GIGA] Borrowing #{b.id} is rejected"
    assert msg.sender == app.config["MAIL_DEFAULT_SENDER"]
    assert msg.recipients == [member.email]
    assert msg.extra_headers == {"X-Labgiga-Notice": "borrowing_status"}
    assert "Reason: Not lab related" in msg.body


def test_mail_failure_is_logged_not_raised(make_item, make_borrowing):
    b = make_borrowing([(make_item(), 1)])

    with mock.patch.object(mail, "send", side_effect=SMTPException("relay refused")):
        BorrowingService.transition(b.id, "APPROVED", "ADMIN")

    assert b.status == "APPROVED"
    log = NotificationLog.query.filter_by(borrowing_id=b.id).one()
    assert log.success is False
    assert log.error_message == "relay refused"


def test_failed_transition_does_not_notify(make_item, make_borrowing):
    b = make_borrowing([(make_item(stock=0, total_stock=5), 1)], status="APPROVED")

    with pytest.raises(InsufficientStock):
        BorrowingService.transition(b.id, "BORROWED", "ADMIN")

    assert NotificationLog.query.count() == 0


def test_patch_status_endpoint(client, admin, auth_header, make_item, make_borrowing):
    b = make_borrowing([(make_item(), 1)])

    res = client.patch(f"/borrowings/{b.id}/status", json={"status": "APPROVED", "adminNotes": "ok"},
                       headers=auth_header(admin))

    assert res.status_code == 200
    body = res.get_json()
    assert body["status"] == "APPROVED"
    assert body["adminNotes"] == "ok"
    assert body["allowedTransitions"] == ["BORROWED", "REJECTED"]


def test_patch_status_rejection_reason(client, admin, auth_header, make_item, make_borrowing):
    b = make_borrowing([(make_item(), 1)])

    res = client.patch(f"/borrowings/{b.id}/status",
                       json={"status": "REJECTED", "rejectionReason": "Incomplete form"},
                       headers=auth_header(admin))

    assert res.status_code == 200
    assert res.get_json()["rejectionReason"] == "Incomplete form"


def test_patch_status_errors(client, admin, member, auth_header, make_item, make_borrowing):
    b = make_borrowing([(make_item(), 1)])

    res = client.patch(f"/borrowings/{b.id}/status", json={"status": "APPROVED"}, headers=auth_header(member))
    assert res.status_code == 403
    assert res.get_json()["error"] == "Forbidden"

    res = client.patch(f"/borrowings/{b.id}/status", json={"status": "RETURNED"}, headers=auth_header(admin))
    assert res.status_code == 409
    assert res.get_json()["error"] == "InvalidTransition"

    res = client.patch(f"/borrowings/{b.id}/status", json={}, headers=auth_header(admin))
    assert res.status_code == 400

    res = client.patch("/borrowings/999/status", json={"status": "APPROVED"}, headers=auth_header(admin))
    assert res.status_code == 404
