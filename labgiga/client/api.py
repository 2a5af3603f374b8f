import logging

import requests

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """The server answered with an error status."""

    def __init__(self, status_code: int, message: str, error: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error = error


class NetworkError(Exception):
    """The request never got an answer (connection, DNS, timeout)."""


class ApiClient:
    """
    Thin JSON client for the Lab GIGA REST API.

    ``token_getter`` returns the bearer token to send (or None);
    ``on_unauthorized`` is called for every 401 answer before the
    ApiError is raised.
    """

    def __init__(self, base_url, token_getter=None, on_unauthorized=None, timeout=10, http=None):
        self.base_url = base_url.rstrip("/")
        self.token_getter = token_getter
        self.on_unauthorized = on_unauthorized
        self.timeout = timeout
        self.http = http or requests.Session()

    def request(self, method, path, json=None, params=None):
        headers = {"Accept": "application/json"}
        token = self.token_getter() if self.token_getter else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            resp = self.http.request(method, url, json=json, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise NetworkError(str(e)) from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code == 401 and self.on_unauthorized:
            self.on_unauthorized()

        if not resp.ok:
            message = body.get("message") if isinstance(body, dict) else None
            error = body.get("error") if isinstance(body, dict) else None
            raise ApiError(resp.status_code, message or f"Request failed ({resp.status_code})", error)
        return body

    def get(self, path, **params):
        return self.request("GET", path, params=params or None)

    def post(self, path, json=None):
        return self.request("POST", path, json=json)

    def patch(self, path, json=None):
        return self.request("PATCH", path, json=json)

    def delete(self, path):
        return self.request("DELETE", path)

    def _list(self, path, key=None):
        # list pages show an empty view when the server is unreachable
        try:
            body = self.get(path)
        except NetworkError:
            return []
        if key and isinstance(body, dict):
            body = body.get(key)
        return body if isinstance(body, list) else []

    def list_items(self):
        return self._list("/items", key="data")

    def my_borrowings(self):
        return self._list("/borrowings/my")

    def list_borrowings(self):
        return self._list("/borrowings", key="data")

    def list_extensions(self):
        return self._list("/extensions")

    def create_borrowing(self, items, borrow_date, return_date, reason):
        return self.post("/borrowings", {
            "items": [{"itemId": item_id, "quantity": qty} for item_id, qty in items],
            "borrowDate": borrow_date,
            "returnDate": return_date,
            "reason": reason,
        })

    def update_borrowing_status(self, borrowing_id, status, notes=None):
        payload = {"status": status}
        if notes:
            payload["rejectionReason" if status == "REJECTED" else "adminNotes"] = notes
        return self.patch(f"/borrowings/{borrowing_id}/status", payload)

    def request_extension(self, borrowing_id, new_return_date, reason):
        return self.post(f"/borrowings/{borrowing_id}/extend", {"newReturnDate": new_return_date, "reason": reason})

    def resolve_extension(self, extension_id, status, admin_notes=None):
        payload = {"status": status}
        if admin_notes:
            payload["adminNotes"] = admin_notes
        return self.patch(f"/extensions/{extension_id}/status", payload)
