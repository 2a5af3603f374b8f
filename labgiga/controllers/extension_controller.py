from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required

from labgiga.errors import DomainError
from labgiga.models.status import Role
from labgiga.services.extension_service import ExtensionService
from labgiga.utils.decorators import current_actor, role_required
from labgiga.utils.responses import domain_error
from labgiga.utils.serializers import extension_to_dict
from labgiga.utils.validation import json_body

extension_bp = Blueprint("extensions", __name__)


@extension_bp.get("")
@jwt_required()
@role_required(Role.ADMIN.value)
def list_extensions():
    return jsonify([extension_to_dict(e, include_borrowing=True) for e in ExtensionService.list_all()])


@extension_bp.patch("/<int:extension_id>/status")
@jwt_required()
def resolve_extension(extension_id: int):
    _user_id, role = current_actor()
    data = json_body()
    try:
        ext = ExtensionService.resolve_extension(
            extension_id, data.get("status"), role, data.get("adminNotes")
        )
        return jsonify(extension_to_dict(ext, include_borrowing=True))
    except DomainError as e:
        return domain_error(e)
