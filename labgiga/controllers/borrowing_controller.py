from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required

from labgiga.errors import DomainError
from labgiga.models.status import BorrowingStatus, Role
from labgiga.services.borrowing_service import BorrowingService
from labgiga.services.extension_service import ExtensionService
from labgiga.tasks.overdue_check import check_overdue
from labgiga.utils.decorators import current_actor, role_required
from labgiga.utils.responses import domain_error, json_error
from labgiga.utils.serializers import borrowing_to_dict, extension_to_dict
from labgiga.utils.validation import clean_text, json_body

borrowing_bp = Blueprint("borrowings", __name__)


@borrowing_bp.get("/my")
@jwt_required()
def my_borrowings():
    user_id, _role = current_actor()
    return jsonify([borrowing_to_dict(b) for b in BorrowingService.list_for_user(user_id)])


@borrowing_bp.get("")
@jwt_required()
@role_required(Role.ADMIN.value)
def all_borrowings():
    rows = BorrowingService.list_all()
    return jsonify({
        "data": [borrowing_to_dict(b) for b in rows],
        "meta": {"total": len(rows)},
    })


@borrowing_bp.get("/stats")
@jwt_required()
@role_required(Role.ADMIN.value)
def stats():
    return jsonify(BorrowingService.stats())


@borrowing_bp.get("/<int:borrowing_id>")
@jwt_required()
def get_borrowing(borrowing_id: int):
    user_id, role = current_actor()
    try:
        b = BorrowingService.get_for_actor(borrowing_id, user_id, role)
        return jsonify(borrowing_to_dict(b))
    except DomainError as e:
        return domain_error(e)


@borrowing_bp.post("")
@jwt_required()
def create_borrowing():
    user_id, _role = current_actor()
    data = json_body()
    try:
        b = BorrowingService.create_borrowing(user_id, data)
        return jsonify(borrowing_to_dict(b)), 201
    except DomainError as e:
        return domain_error(e)


@borrowing_bp.patch("/<int:borrowing_id>/status")
@jwt_required()
def update_status(borrowing_id: int):
    _user_id, role = current_actor()
    data = json_body()

    status = clean_text(data.get("status"), "status").upper()
    if not status:
        return json_error("status is required", 400, "ValidationError")

    # the web client sends rejection text as rejectionReason, anything else as adminNotes
    if status == BorrowingStatus.REJECTED.value:
        notes = data.get("rejectionReason") or data.get("adminNotes")
    else:
        notes = data.get("adminNotes")

    try:
        b = BorrowingService.transition(borrowing_id, status, role, notes)
        return jsonify(borrowing_to_dict(b))
    except DomainError as e:
        return domain_error(e)


@borrowing_bp.post("/<int:borrowing_id>/extend")
@jwt_required()
def request_extension(borrowing_id: int):
    user_id, _role = current_actor()
    data = json_body()
    try:
        ext = ExtensionService.request_extension(
            borrowing_id, data.get("newReturnDate"), data.get("reason"), user_id
        )
        return jsonify(extension_to_dict(ext)), 201
    except DomainError as e:
        return domain_error(e)


@borrowing_bp.post("/overdue-check")
@jwt_required()
@role_required(Role.ADMIN.value)
def run_overdue_check():
    result = check_overdue()
    return jsonify({"success": True, **result})
