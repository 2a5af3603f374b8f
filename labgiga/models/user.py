from labgiga.extensions import db
from labgiga.models.status import Role
from labgiga.utils.dates import utcnow


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    nrp = db.Column(db.String(32), nullable=True)  # student id
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(10), nullable=False, default=Role.USER.value)
    student_card_url = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value
