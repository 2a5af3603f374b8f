from flask import current_app

from labgiga.repositories.borrowing_repo import BorrowingRepo
from labgiga.services.borrowing_service import BorrowingService
from labgiga.utils.dates import utcnow


def check_overdue(now=None) -> dict:
    """
    Flags BORROWED borrowings whose return date has passed as OVERDUE.

    Each row is flipped with a conditional update, so running this twice,
    or alongside an admin returning the same borrowing, changes nothing
    that already moved on. Needs an app context.
    """
    now = now or utcnow()
    candidates = BorrowingRepo.find_overdue_ids(now)

    flagged = []
    for borrowing_id in candidates:
        if BorrowingService.mark_overdue(borrowing_id, now):
            flagged.append(borrowing_id)

    current_app.logger.info(
        f"[overdue_check] candidates={len(candidates)} flagged={len(flagged)}"
    )
    return {"checked": len(candidates), "flagged": flagged}


def run_overdue_check_job(app):
    with app.app_context():
        try:
            return check_overdue()
        except Exception as e:
            current_app.logger.exception(f"[overdue_check] failed: {e}")
            return None
