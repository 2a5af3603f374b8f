from flask import Blueprint, jsonify
from flask_jwt_extended import current_user, jwt_required

from labgiga.errors import DomainError
from labgiga.services.user_service import UserService
from labgiga.utils.responses import domain_error
from labgiga.utils.serializers import user_to_dict
from labgiga.utils.validation import json_body

user_bp = Blueprint("users", __name__)


@user_bp.patch("/profile")
@jwt_required()
def update_profile():
    data = json_body()
    try:
        user = UserService.update_profile(current_user.id, data)
        return jsonify(user_to_dict(user))
    except DomainError as e:
        return domain_error(e)
