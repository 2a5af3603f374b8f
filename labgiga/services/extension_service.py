from datetime import timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from labgiga.errors import (
    Conflict,
    DuplicatePending,
    Forbidden,
    InvalidRange,
    InvalidState,
    NotFound,
    ValidationError,
)
from labgiga.extensions import db
from labgiga.models.extension import Extension
from labgiga.models.status import (
    EXTENDABLE_STATUSES,
    BorrowingStatus,
    ExtensionStatus,
    Role,
    parse_status,
)
from labgiga.repositories.borrowing_repo import BorrowingRepo
from labgiga.repositories.extension_repo import ExtensionRepo
from labgiga.services.notification_service import NotificationService
from labgiga.utils.dates import parse_datetime, utcnow
from labgiga.utils.validation import clean_text

# an approved extension may still move the date of a borrowing that went overdue meanwhile
RESOLVABLE_PARENT_STATUSES = (
    BorrowingStatus.APPROVED.value,
    BorrowingStatus.BORROWED.value,
    BorrowingStatus.OVERDUE.value,
)


class ExtensionService:
    @staticmethod
    def list_all():
        return ExtensionRepo.list_all()

    @staticmethod
    def get_extension(extension_id: int):
        extension = ExtensionRepo.get(extension_id)
        if not extension:
            raise NotFound("Extension not found")
        return extension

    @staticmethod
    def request_extension(borrowing_id: int, new_return_date, reason: str, actor_user_id: int):
        borrowing = BorrowingRepo.get(borrowing_id)
        if not borrowing:
            raise NotFound("Borrowing not found")
        if borrowing.user_id != actor_user_id:
            raise Forbidden("Only the borrower can request an extension")
        if borrowing.status not in {s.value for s in EXTENDABLE_STATUSES}:
            raise InvalidState(f"Cannot extend a borrowing with status {borrowing.status}")
        if ExtensionRepo.has_pending(borrowing.id):
            raise DuplicatePending()

        new_date = parse_datetime(new_return_date)
        if new_date is None:
            raise ValidationError("newReturnDate must be an ISO-8601 date")
        max_days = current_app.config["MAX_EXTENSION_DAYS"]
        if new_date <= borrowing.return_date:
            raise InvalidRange("newReturnDate must be after the current return date")
        if new_date > borrowing.return_date + timedelta(days=max_days):
            raise InvalidRange(f"An extension can add at most {max_days} days")

        reason = clean_text(reason, "reason")
        if not reason:
            raise ValidationError("reason is required")

        extension = Extension(
            borrowing_id=borrowing.id,
            new_return_date=new_date,
            reason=reason,
            status=ExtensionStatus.PENDING.value,
            pending_borrowing_id=borrowing.id,
        )
        try:
            ExtensionRepo.add(extension)
            db.session.commit()
        except IntegrityError:
            # another request created the pending extension first
            db.session.rollback()
            raise DuplicatePending()

        current_app.logger.info(
            f"[extension] requested id={extension.id} borrowing={borrowing.id} until={new_date:%Y-%m-%d}"
        )
        return extension

    @staticmethod
    def resolve_extension(extension_id: int, target_status, actor_role: str, notes: str | None = None):
        """
        Approves or rejects a pending extension. Approval moves the parent
        borrowing's return date in the same transaction.
        """
        if actor_role != Role.ADMIN.value:
            raise Forbidden("Only admins can resolve extension requests")

        target = parse_status(ExtensionStatus, target_status)
        if target not in (ExtensionStatus.APPROVED, ExtensionStatus.REJECTED):
            raise ValidationError("status must be APPROVED or REJECTED")

        extension = ExtensionService.get_extension(extension_id)
        if extension.status != ExtensionStatus.PENDING.value:
            raise InvalidState(f"Extension is already {extension.status}")

        now = utcnow()
        notes = clean_text(notes, "notes") or None
        values = {"status": target.value, "resolved_at": now}
        if notes:
            values["admin_notes"] = notes

        borrowing_id = extension.borrowing_id
        new_return_date = extension.new_return_date
        try:
            if not ExtensionRepo.resolve_if_pending(extension.id, values):
                raise Conflict()
            if target == ExtensionStatus.APPROVED:
                moved = BorrowingRepo.set_return_date(borrowing_id, RESOLVABLE_PARENT_STATUSES, new_return_date, now)
                if not moved:
                    raise InvalidState("The borrowing is no longer active, reject the extension instead")
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        current_app.logger.info(f"[extension] id={extension.id} -> {target.value} borrowing={borrowing_id}")
        NotificationService.extension_resolved(extension)
        return extension
