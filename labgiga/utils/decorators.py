from functools import wraps

from flask_jwt_extended import current_user, verify_jwt_in_request

from labgiga.utils.responses import json_error


def role_required(*roles):
    """Checks the stored role of the token's user, so a role change applies at once."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            if current_user.role not in roles:
                return json_error("Admin access required", 403, "Forbidden")
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def current_actor():
    """(user_id, role) of the user behind the verified access token."""
    return current_user.id, current_user.role
