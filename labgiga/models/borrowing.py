from labgiga.extensions import db
from labgiga.models.status import BorrowingStatus
from labgiga.utils.dates import utcnow


class Borrowing(db.Model):
    __tablename__ = "borrowings"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    borrow_date = db.Column(db.DateTime, nullable=False)
    return_date = db.Column(db.DateTime, nullable=False)
    actual_return_date = db.Column(db.DateTime, nullable=True)
    reason = db.Column(db.Text, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=BorrowingStatus.PENDING.value, index=True)
    admin_notes = db.Column(db.Text, nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref="borrowings")
    items = db.relationship(
        "BorrowingItem",
        back_populates="borrowing",
        order_by="BorrowingItem.id",
        cascade="all, delete-orphan",
    )
    extensions = db.relationship(
        "Extension",
        back_populates="borrowing",
        order_by="Extension.id.desc()",
        cascade="all, delete-orphan",
    )


class BorrowingItem(db.Model):
    __tablename__ = "borrowing_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_borrowing_items_quantity_positive"),
    )

    id = db.Column(db.Integer, primary_key=True)
    borrowing_id = db.Column(db.Integer, db.ForeignKey("borrowings.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)

    borrowing = db.relationship("Borrowing", back_populates="items")
    item = db.relationship("Item")
