import json
import logging
import os
import tempfile

logger = logging.getLogger(__name__)

FIELDS = ("accessToken", "refreshToken", "user")


class TokenStore:
    """
    Access token, refresh token and user profile kept in one JSON file.

    The three fields are always written and removed together: ``save``
    replaces the file atomically and ``clear`` deletes it.
    """

    def __init__(self, path):
        self.path = os.fspath(path)

    def load(self) -> dict:
        """Stored fields, or all-None if nothing usable is stored."""
        empty = dict.fromkeys(FIELDS)
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return empty
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable token store %s: %s", self.path, e)
            return empty

        if not isinstance(data, dict):
            return empty
        return {k: data.get(k) for k in FIELDS}

    def save(self, user: dict, access_token: str, refresh_token: str):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)

        payload = {"accessToken": access_token, "refreshToken": refresh_token, "user": user}
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".labgiga-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def clear(self):
        try:
            os.unlink(self.path)
        except FileNotFoundError:
            pass
