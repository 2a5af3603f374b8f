from flask import current_app

from labgiga.models.notification_log import NotificationLog
from labgiga.repositories.notification_repo import NotificationRepo
from labgiga.services.mail_service import MailService
from labgiga.utils.dates import utcnow

STATUS_LABELS = {
    "PENDING": "pending review",
    "APPROVED": "approved",
    "BORROWED": "picked up",
    "RETURNED": "returned",
    "REJECTED": "rejected",
    "OVERDUE": "overdue",
}


class NotificationService:
    """
    Tells the owning user about changes to their borrowing.

    Called after the change is committed; a delivery failure is logged
    and recorded but never undoes the change.
    """

    @staticmethod
    def _deliver(borrowing, notif_type: str, subject: str, body: str) -> bool:
        user = borrowing.user
        to_email = user.email if user else None

        if not to_email:
            ok, err = False, "missing_email"
        else:
            ok, err = MailService.send_notice(to_email, notif_type, subject, body)

        NotificationRepo.log(NotificationLog(
            borrowing_id=borrowing.id,
            type=notif_type,
            email=to_email,
            message=subject,
            success=ok,
            error_message=err,
            sent_at=utcnow(),
        ))
        return ok

    @staticmethod
    def borrowing_status_changed(borrowing, old_status: str, new_status: str) -> bool:
        name = borrowing.user.name if borrowing.user else "there"
        label = STATUS_LABELS.get(new_status, new_status.lower())
        subject = f"Borrowing #{borrowing.id} is {label}"

        lines = [
            f"Hi {name},",
            "",
            f"Your borrowing #{borrowing.id} changed from {old_status} to {new_status}.",
            f"Return date: {borrowing.return_date:%Y-%m-%d}",
        ]
        if new_status == "REJECTED" and borrowing.rejection_reason:
            lines.append(f"Reason: {borrowing.rejection_reason}")
        elif borrowing.admin_notes:
            lines.append(f"Notes: {borrowing.admin_notes}")
        if new_status == "OVERDUE":
            lines.append("Please return the items as soon as possible.")

        ok = NotificationService._deliver(borrowing, "borrowing_status", subject, "\n".join(lines))
        current_app.logger.info(
            f"[notify] borrowing={borrowing.id} {old_status}->{new_status} delivered={ok}"
        )
        return ok

    @staticmethod
    def extension_resolved(extension) -> bool:
        borrowing = extension.borrowing
        name = borrowing.user.name if borrowing.user else "there"
        subject = f"Extension for borrowing #{borrowing.id} {extension.status.lower()}"

        lines = [
            f"Hi {name},",
            "",
            f"Your extension request to {extension.new_return_date:%Y-%m-%d} was {extension.status.lower()}.",
            f"Current return date: {borrowing.return_date:%Y-%m-%d}",
        ]
        if extension.admin_notes:
            lines.append(f"Notes: {extension.admin_notes}")

        ok = NotificationService._deliver(borrowing, "extension_resolved", subject, "\n".join(lines))
        current_app.logger.info(
            f"[notify] extension={extension.id} status={extension.status} delivered={ok}"
        )
        return ok
