from flask import current_app
from flask_jwt_extended import create_access_token, create_refresh_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError
from werkzeug.security import check_password_hash, generate_password_hash

from labgiga.errors import NotFound, Unauthorized, ValidationError
from labgiga.models.status import Role
from labgiga.models.user import User
from labgiga.repositories.token_repo import TokenRepo
from labgiga.repositories.user_repo import UserRepo
from labgiga.utils.validation import clean_text


class AuthService:
    @staticmethod
    def _claims(user: User) -> dict:
        return {"role": user.role, "email": user.email}

    @staticmethod
    def issue_tokens(user: User):
        access = create_access_token(identity=str(user.id), additional_claims=AuthService._claims(user))
        refresh = create_refresh_token(identity=str(user.id), additional_claims=AuthService._claims(user))
        return access, refresh

    @staticmethod
    def register(email: str, password: str, name: str, nrp: str | None = None, role: str = Role.USER.value):
        email = clean_text(email, "email").lower()
        name = clean_text(name, "name")
        nrp = clean_text(nrp, "nrp") or None
        if password is not None and not isinstance(password, str):
            raise ValidationError("password must be a string")

        if not email or not password or not name:
            raise ValidationError("email, password and name are required")
        if "@" not in email:
            raise ValidationError("Invalid email format")
        if len(password) < current_app.config["MIN_PASSWORD_LENGTH"]:
            raise ValidationError(
                f"Password must be at least {current_app.config['MIN_PASSWORD_LENGTH']} characters"
            )
        if UserRepo.get_by_email(email):
            raise ValidationError("Email is already registered")

        user = User(
            email=email,
            name=name,
            nrp=nrp,
            password_hash=generate_password_hash(password),
            role=role,
        )
        UserRepo.create(user)
        current_app.logger.info(f"[auth] registered user id={user.id} role={user.role}")
        return user

    @staticmethod
    def login(email: str, password: str):
        if password is not None and not isinstance(password, str):
            raise ValidationError("password must be a string")
        user = UserRepo.get_by_email(clean_text(email, "email").lower())
        if not user or not check_password_hash(user.password_hash, password or ""):
            raise Unauthorized("Invalid email or password")

        access, refresh = AuthService.issue_tokens(user)
        return user, access, refresh

    @staticmethod
    def refresh(user_id: int):
        user = UserRepo.get_by_id(user_id)
        if not user:
            raise Unauthorized("User no longer exists")
        return create_access_token(identity=str(user.id), additional_claims=AuthService._claims(user))

    @staticmethod
    def logout(jti: str, token_type: str, user_id: int | None):
        TokenRepo.revoke(jti, token_type, user_id)
        current_app.logger.info(f"[auth] revoked {token_type} token for user id={user_id}")

    @staticmethod
    def revoke_refresh_token(encoded, user_id: int):
        """Blocklists a refresh token handed in at logout. It must belong to ``user_id``."""
        if not isinstance(encoded, str) or not encoded.strip():
            raise ValidationError("refreshToken must be a token string")
        try:
            decoded = decode_token(encoded.strip(), allow_expired=True)
        except (JWTExtendedException, PyJWTError):
            raise ValidationError("refreshToken is not a valid token")
        if decoded.get("type") != "refresh" or decoded.get("sub") != str(user_id):
            raise ValidationError("refreshToken does not belong to this session")
        AuthService.logout(decoded["jti"], "refresh", user_id)

    @staticmethod
    def get_user(user_id: int):
        user = UserRepo.get_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        return user
