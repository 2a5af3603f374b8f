from smtplib import SMTPException

from flask import current_app
from flask_mail import Message

from labgiga.extensions import mail


class MailService:
    @staticmethod
    def build_message(to_email: str, kind: str, subject: str, body: str) -> Message:
        """
        Subject gets MAIL_SUBJECT_PREFIX; ``kind`` travels as the
        X-Labgiga-Notice header so mail filters can sort notices.
        """
        prefix = current_app.config.get("MAIL_SUBJECT_PREFIX", "")
        return Message(
            subject=f"{prefix} {subject}".strip(),
            sender=current_app.config["MAIL_DEFAULT_SENDER"],
            recipients=[to_email],
            body=body,
            extra_headers={"X-Labgiga-Notice": kind},
        )

    @staticmethod
    def send_notice(to_email: str, kind: str, subject: str, body: str) -> tuple[bool, str | None]:
        """Returns (delivered, error_text). SMTP and socket failures are reported, not raised."""
        msg = MailService.build_message(to_email, kind, subject, body)
        try:
            mail.send(msg)
        except (SMTPException, OSError) as e:
            current_app.logger.warning(f"[mail] {kind} to {to_email} failed: {e}")
            return False, str(e)
        return True, None
