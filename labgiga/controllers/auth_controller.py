from flask import Blueprint, jsonify
from flask_jwt_extended import current_user, get_jwt, jwt_required

from labgiga.errors import DomainError
from labgiga.services.auth_service import AuthService
from labgiga.utils.responses import domain_error
from labgiga.utils.serializers import user_to_dict
from labgiga.utils.validation import json_body

auth_bp = Blueprint("auth", __name__)


def _auth_payload(user, access, refresh):
    return {"user": user_to_dict(user), "accessToken": access, "refreshToken": refresh}


@auth_bp.post("/register")
def register():
    data = json_body()
    try:
        # role is never taken from the request
        user = AuthService.register(
            email=data.get("email"),
            password=data.get("password") or "",
            name=data.get("name"),
            nrp=data.get("nrp"),
        )
        access, refresh = AuthService.issue_tokens(user)
        return jsonify(_auth_payload(user, access, refresh)), 201
    except DomainError as e:
        return domain_error(e)


@auth_bp.post("/login")
def login():
    data = json_body()
    try:
        user, access, refresh = AuthService.login(data.get("email"), data.get("password"))
        return jsonify(_auth_payload(user, access, refresh))
    except DomainError as e:
        return domain_error(e)


@auth_bp.get("/profile")
@jwt_required()
def profile():
    return jsonify(user_to_dict(current_user))


@auth_bp.post("/refresh")
@jwt_required(refresh=True)
def refresh():
    try:
        access = AuthService.refresh(current_user.id)
        return jsonify({"accessToken": access})
    except DomainError as e:
        return domain_error(e)


@auth_bp.post("/logout")
@jwt_required(verify_type=False)
def logout():
    claims = get_jwt()
    data = json_body()
    try:
        refresh_token = data.get("refreshToken")
        if refresh_token is not None:
            AuthService.revoke_refresh_token(refresh_token, current_user.id)
        AuthService.logout(claims["jti"], claims["type"], current_user.id)
    except DomainError as e:
        return domain_error(e)
    return jsonify({"success": True, "message": "Logged out"})
