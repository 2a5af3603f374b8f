from datetime import timedelta

from flask import current_app

from labgiga.errors import (
    Conflict,
    Forbidden,
    InsufficientStock,
    InvalidRange,
    InvalidState,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from labgiga.models.borrowing import Borrowing, BorrowingItem
from labgiga.models.status import (
    STOCK_HOLDING_STATUSES,
    BorrowingStatus,
    Role,
    allowed_next,
    parse_status,
)
from labgiga.repositories.borrowing_repo import BorrowingRepo
from labgiga.repositories.item_repo import ItemRepo
from labgiga.services.notification_service import NotificationService
from labgiga.utils.dates import parse_datetime, utcnow
from labgiga.utils.validation import clean_text, parse_int


class BorrowingService:
    @staticmethod
    def _parse_lines(raw) -> list[tuple[int, int]]:
        """
        ``[{"itemId": 1, "quantity": 2}, ...]`` -> ``[(1, 2), ...]``.
        Repeated item ids are merged, first occurrence keeps its position.
        """
        if not isinstance(raw, list) or not raw:
            raise ValidationError("items must be a non-empty list")

        merged: dict[int, int] = {}
        for entry in raw:
            if not isinstance(entry, dict):
                raise ValidationError("each item must be an object with itemId and quantity")
            item_id = parse_int(entry.get("itemId", entry.get("item_id")), "itemId")
            quantity = parse_int(entry.get("quantity", 1), "quantity")
            if quantity < 1:
                raise ValidationError("quantity must be at least 1")
            merged[item_id] = merged.get(item_id, 0) + quantity
        return list(merged.items())

    @staticmethod
    def create_borrowing(user_id: int, data: dict):
        borrow_date = parse_datetime(data.get("borrowDate"))
        return_date = parse_datetime(data.get("returnDate"))
        reason = clean_text(data.get("reason"), "reason")

        if not borrow_date or not return_date:
            raise ValidationError("borrowDate and returnDate must be ISO-8601 dates")
        if return_date <= borrow_date:
            raise InvalidRange("returnDate must be after borrowDate")
        # one day of slack for clients sending local midnight as UTC
        if borrow_date.date() < (utcnow() - timedelta(days=1)).date():
            raise InvalidRange("borrowDate cannot be in the past")
        if not reason:
            raise ValidationError("reason is required")

        lines = BorrowingService._parse_lines(data.get("items"))
        for item_id, quantity in lines:
            item = ItemRepo.get(item_id)
            if not item:
                raise NotFound(f"Item {item_id} not found")
            if not item.is_available:
                raise InvalidState(f"{item.name} is not available for borrowing")
            if item.stock < quantity:
                raise InsufficientStock(f"Only {item.stock} of {item.name} in stock")

        borrowing = Borrowing(
            user_id=user_id,
            borrow_date=borrow_date,
            return_date=return_date,
            reason=reason,
            status=BorrowingStatus.PENDING.value,
            items=[BorrowingItem(item_id=i, quantity=q) for i, q in lines],
        )
        BorrowingRepo.create(borrowing)
        current_app.logger.info(f"[borrowing] created id={borrowing.id} user={user_id} lines={len(lines)}")
        return borrowing

    @staticmethod
    def list_for_user(user_id: int):
        return BorrowingRepo.list_by_user(user_id)

    @staticmethod
    def list_all():
        return BorrowingRepo.list_all()

    @staticmethod
    def get_borrowing(borrowing_id: int):
        borrowing = BorrowingRepo.get(borrowing_id)
        if not borrowing:
            raise NotFound("Borrowing not found")
        return borrowing

    @staticmethod
    def get_for_actor(borrowing_id: int, user_id: int, role: str):
        borrowing = BorrowingService.get_borrowing(borrowing_id)
        if role != Role.ADMIN.value and borrowing.user_id != user_id:
            raise Forbidden("This borrowing belongs to another user")
        return borrowing

    @staticmethod
    def transition(borrowing_id: int, target_status, actor_role: str, notes: str | None = None):
        """
        Moves a borrowing to ``target_status`` following BORROWING_TRANSITIONS.

        Status, dates and stock are written in one transaction. The status
        write is conditional on the status read here, so a concurrent change
        makes this call fail with Conflict instead of overwriting it.
        """
        if actor_role != Role.ADMIN.value:
            raise Forbidden("Only admins can change a borrowing status")

        borrowing = BorrowingService.get_borrowing(borrowing_id)
        current_value = BorrowingRepo.get_status(borrowing_id)
        current = parse_status(BorrowingStatus, current_value)
        target = parse_status(BorrowingStatus, target_status)

        if target is None or target not in allowed_next(current):
            raise InvalidTransition(f"Cannot change status from {current_value} to {target_status}")

        now = utcnow()
        values = {"status": target.value, "updated_at": now}
        notes = clean_text(notes, "notes") or None
        if notes:
            if target == BorrowingStatus.REJECTED:
                values["rejection_reason"] = notes
            else:
                values["admin_notes"] = notes
        if target == BorrowingStatus.RETURNED:
            values["actual_return_date"] = now

        lines = [(line.item_id, line.quantity, line.item.name if line.item else line.item_id)
                 for line in borrowing.items]
        releases_stock = target == BorrowingStatus.RETURNED or (
            target == BorrowingStatus.REJECTED and current in STOCK_HOLDING_STATUSES
        )

        try:
            if not BorrowingRepo.compare_and_set(borrowing_id, current.value, values):
                raise Conflict()

            if target == BorrowingStatus.BORROWED:
                for item_id, quantity, label in lines:
                    if not ItemRepo.take_stock(item_id, quantity):
                        raise InsufficientStock(f"Not enough stock of {label} for {quantity} unit(s)")
            elif releases_stock:
                for item_id, quantity, _label in lines:
                    ItemRepo.release_stock(item_id, quantity)

            BorrowingRepo.commit()
        except Exception:
            BorrowingRepo.rollback()
            raise

        current_app.logger.info(
            f"[borrowing] id={borrowing_id} {current.value}->{target.value}"
        )
        NotificationService.borrowing_status_changed(borrowing, current.value, target.value)
        return borrowing

    @staticmethod
    def mark_overdue(borrowing_id: int, now=None) -> bool:
        """
        Flags one BORROWED borrowing past its return date as OVERDUE.
        Returns False (and does nothing) if it has moved on or was extended.
        """
        now = now or utcnow()
        try:
            flagged = BorrowingRepo.flag_overdue(borrowing_id, now)
            BorrowingRepo.commit()
        except Exception:
            BorrowingRepo.rollback()
            raise

        if flagged:
            borrowing = BorrowingRepo.get(borrowing_id)
            NotificationService.borrowing_status_changed(
                borrowing, BorrowingStatus.BORROWED.value, BorrowingStatus.OVERDUE.value
            )
        return flagged

    @staticmethod
    def stats() -> dict:
        counts = BorrowingRepo.count_by_status()
        result = {s.value.lower(): counts.get(s.value, 0) for s in BorrowingStatus}
        result["total"] = sum(counts.values())
        return result
