from flask import jsonify

from labgiga.errors import DomainError


def json_error(message, code=400, error=None):
    body = {"success": False, "message": message}
    if error:
        body["error"] = error
    return jsonify(body), code


def domain_error(e: DomainError):
    return jsonify(e.to_dict()), e.status_code
