"""JSON shapes returned to the web client (camelCase keys)."""
from labgiga.models.status import EXTENDABLE_STATUSES, ExtensionStatus, allowed_next
from labgiga.utils.dates import isoformat


def user_to_dict(u):
    return {
        "id": u.id,
        "email": u.email,
        "name": u.name,
        "nrp": u.nrp,
        "role": u.role,
        "studentCardUrl": u.student_card_url,
        "createdAt": isoformat(u.created_at),
    }


def user_brief(u):
    if u is None:
        return None
    return {"id": u.id, "email": u.email, "name": u.name, "nrp": u.nrp}


def item_to_dict(i):
    return {
        "id": i.id,
        "name": i.name,
        "description": i.description,
        "category": i.category,
        "imageUrl": i.image_url,
        "stock": i.stock,
        "totalStock": i.total_stock,
        "isAvailable": bool(i.is_available),
        "createdAt": isoformat(i.created_at),
        "updatedAt": isoformat(i.updated_at),
    }


def borrowing_line_to_dict(line):
    item = line.item
    return {
        "id": line.id,
        "quantity": line.quantity,
        "item": {
            "id": line.item_id,
            "name": item.name if item else None,
            "imageUrl": item.image_url if item else None,
        },
    }


def extension_to_dict(e, include_borrowing=False):
    data = {
        "id": e.id,
        "borrowingId": e.borrowing_id,
        "newReturnDate": isoformat(e.new_return_date),
        "reason": e.reason,
        "status": e.status,
        "adminNotes": e.admin_notes,
        "createdAt": isoformat(e.created_at),
        "resolvedAt": isoformat(e.resolved_at),
    }
    if include_borrowing and e.borrowing is not None:
        b = e.borrowing
        data["borrowing"] = {
            "id": b.id,
            "returnDate": isoformat(b.return_date),
            "status": b.status,
            "items": [borrowing_line_to_dict(x) for x in b.items],
            "user": user_brief(b.user),
        }
    return data


def borrowing_to_dict(b, include_extensions=True):
    has_pending = any(e.status == ExtensionStatus.PENDING.value for e in b.extensions)
    data = {
        "id": b.id,
        "status": b.status,
        "borrowDate": isoformat(b.borrow_date),
        "returnDate": isoformat(b.return_date),
        "actualReturnDate": isoformat(b.actual_return_date),
        "reason": b.reason,
        "adminNotes": b.admin_notes,
        "rejectionReason": b.rejection_reason,
        "createdAt": isoformat(b.created_at),
        "updatedAt": isoformat(b.updated_at),
        "user": user_brief(b.user),
        "items": [borrowing_line_to_dict(x) for x in b.items],
        # rendering hints only, the service re-checks everything
        "allowedTransitions": [s.value for s in allowed_next(b.status)],
        "canRequestExtension": b.status in {s.value for s in EXTENDABLE_STATUSES} and not has_pending,
    }
    if include_extensions:
        data["extensions"] = [extension_to_dict(e) for e in b.extensions]
    return data
