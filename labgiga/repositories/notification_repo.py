from labgiga.extensions import db
from labgiga.models.notification_log import NotificationLog


class NotificationRepo:
    @staticmethod
    def log(entry: NotificationLog):
        db.session.add(entry)
        db.session.commit()
        return entry
