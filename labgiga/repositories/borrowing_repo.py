from datetime import datetime

from sqlalchemy import func, update

from labgiga.extensions import db
from labgiga.models.borrowing import Borrowing
from labgiga.models.status import BorrowingStatus


class BorrowingRepo:
    @staticmethod
    def get(borrowing_id: int):
        return db.session.get(Borrowing, borrowing_id)

    @staticmethod
    def get_status(borrowing_id: int):
        return db.session.query(Borrowing.status).filter(Borrowing.id == borrowing_id).scalar()

    @staticmethod
    def list_by_user(user_id: int):
        return Borrowing.query.filter_by(user_id=user_id).order_by(Borrowing.id.desc()).all()

    @staticmethod
    def list_all():
        return Borrowing.query.order_by(Borrowing.id.desc()).all()

    @staticmethod
    def create(borrowing: Borrowing):
        db.session.add(borrowing)
        db.session.commit()
        return borrowing

    @staticmethod
    def compare_and_set(borrowing_id: int, expected_status: str, values: dict) -> bool:
        """
        Writes ``values`` only if the row still has ``expected_status``.
        Does not commit; the caller owns the transaction.
        """
        stmt = (
            update(Borrowing)
            .where(Borrowing.id == borrowing_id, Borrowing.status == expected_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return db.session.execute(stmt).rowcount == 1

    @staticmethod
    def set_return_date(borrowing_id: int, allowed_statuses, return_date: datetime, now: datetime) -> bool:
        stmt = (
            update(Borrowing)
            .where(Borrowing.id == borrowing_id, Borrowing.status.in_(allowed_statuses))
            .values(return_date=return_date, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return db.session.execute(stmt).rowcount == 1

    @staticmethod
    def find_overdue_ids(now: datetime):
        rows = (
            db.session.query(Borrowing.id)
            .filter(Borrowing.status == BorrowingStatus.BORROWED.value, Borrowing.return_date < now)
            .order_by(Borrowing.id)
            .all()
        )
        return [r[0] for r in rows]

    @staticmethod
    def count_by_status():
        rows = db.session.query(Borrowing.status, func.count(Borrowing.id)).group_by(Borrowing.status).all()
        return {status: count for status, count in rows}

    @staticmethod
    def commit():
        db.session.commit()

    @staticmethod
    def rollback():
        db.session.rollback()

    @staticmethod
    def flag_overdue(borrowing_id: int, now: datetime) -> bool:
        """BORROWED -> OVERDUE only if still BORROWED and still past its return date."""
        stmt = (
            update(Borrowing)
            .where(
                Borrowing.id == borrowing_id,
                Borrowing.status == BorrowingStatus.BORROWED.value,
                Borrowing.return_date < now,
            )
            .values(status=BorrowingStatus.OVERDUE.value, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return db.session.execute(stmt).rowcount == 1
