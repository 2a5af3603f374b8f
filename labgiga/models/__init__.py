from labgiga.models.user import User
from labgiga.models.item import Item
from labgiga.models.borrowing import Borrowing, BorrowingItem
from labgiga.models.extension import Extension
from labgiga.models.notification_log import NotificationLog
from labgiga.models.token_blocklist import TokenBlocklist

__all__ = [
    "User",
    "Item",
    "Borrowing",
    "BorrowingItem",
    "Extension",
    "NotificationLog",
    "TokenBlocklist",
]
