from sqlalchemy import update

from labgiga.extensions import db
from labgiga.models.extension import Extension
from labgiga.models.status import ExtensionStatus


class ExtensionRepo:
    @staticmethod
    def get(extension_id: int):
        return db.session.get(Extension, extension_id)

    @staticmethod
    def list_all():
        return Extension.query.order_by(Extension.id.desc()).all()

    @staticmethod
    def has_pending(borrowing_id: int) -> bool:
        return (
            Extension.query.filter_by(borrowing_id=borrowing_id, status=ExtensionStatus.PENDING.value).first()
            is not None
        )

    @staticmethod
    def add(extension: Extension):
        db.session.add(extension)
        db.session.flush()
        return extension

    @staticmethod
    def resolve_if_pending(extension_id: int, values: dict) -> bool:
        stmt = (
            update(Extension)
            .where(Extension.id == extension_id, Extension.status == ExtensionStatus.PENDING.value)
            .values(pending_borrowing_id=None, **values)
            .execution_options(synchronize_session=False)
        )
        return db.session.execute(stmt).rowcount == 1
