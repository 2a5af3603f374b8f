from labgiga.extensions import db
from labgiga.models.status import ExtensionStatus
from labgiga.utils.dates import utcnow


class Extension(db.Model):
    __tablename__ = "extensions"

    id = db.Column(db.Integer, primary_key=True)
    borrowing_id = db.Column(db.Integer, db.ForeignKey("borrowings.id"), nullable=False, index=True)

    new_return_date = db.Column(db.DateTime, nullable=False)
    reason = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=ExtensionStatus.PENDING.value)
    admin_notes = db.Column(db.Text, nullable=True)

    # set to borrowing_id while PENDING, NULL afterwards; the unique index
    # allows at most one pending extension per borrowing
    pending_borrowing_id = db.Column(db.Integer, nullable=True, unique=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    resolved_at = db.Column(db.DateTime, nullable=True)

    borrowing = db.relationship("Borrowing", back_populates="extensions")
