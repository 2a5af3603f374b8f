import enum


class Role(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class BorrowingStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    BORROWED = "BORROWED"
    RETURNED = "RETURNED"
    REJECTED = "REJECTED"
    OVERDUE = "OVERDUE"


class ExtensionStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# RETURNED and REJECTED are terminal
BORROWING_TRANSITIONS = {
    BorrowingStatus.PENDING: (BorrowingStatus.APPROVED, BorrowingStatus.REJECTED),
    BorrowingStatus.APPROVED: (BorrowingStatus.BORROWED, BorrowingStatus.REJECTED),
    BorrowingStatus.BORROWED: (BorrowingStatus.RETURNED, BorrowingStatus.OVERDUE),
    BorrowingStatus.OVERDUE: (BorrowingStatus.RETURNED,),
    BorrowingStatus.RETURNED: (),
    BorrowingStatus.REJECTED: (),
}

# statuses in which the borrowed quantities are out of Item.stock
STOCK_HOLDING_STATUSES = (BorrowingStatus.BORROWED, BorrowingStatus.OVERDUE)

EXTENDABLE_STATUSES = (BorrowingStatus.APPROVED, BorrowingStatus.BORROWED)


def parse_status(enum_cls, value):
    """Returns the enum member for ``value`` or None if it is not a known status."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        return None


def allowed_next(status) -> tuple:
    current = parse_status(BorrowingStatus, status)
    if current is None:
        return ()
    return BORROWING_TRANSITIONS.get(current, ())
