import logging

from labgiga.client.api import ApiClient, ApiError, NetworkError

logger = logging.getLogger(__name__)


class AuthSession:
    """
    Client-side authentication state.

    Lifecycle:
    - ``init()`` loads the persisted tokens and re-validates them with
      ``GET /auth/profile``; any failure tears the session down.
    - ``teardown()`` clears tokens and profile, in memory and on disk.

    The session also installs itself into the ApiClient, so every request
    carries the current access token and any 401 answer logs out.
    """

    def __init__(self, api: ApiClient, store):
        self.api = api
        self.store = store
        self.user = None
        self.access_token = None
        self.refresh_token = None

        api.token_getter = lambda: self.access_token
        api.on_unauthorized = self.teardown

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token and self.user)

    def init(self) -> bool:
        stored = self.store.load()
        if not stored["accessToken"]:
            self._reset()
            return False

        self.access_token = stored["accessToken"]
        self.refresh_token = stored["refreshToken"]
        self.user = stored["user"]

        try:
            profile = self.api.get("/auth/profile")
        except (ApiError, NetworkError) as e:
            logger.info("Stored session rejected, logging out: %s", e)
            self.teardown()
            return False

        self.set_auth(profile, self.access_token, self.refresh_token)
        return True

    def set_auth(self, user: dict, access_token: str, refresh_token: str):
        self.store.save(user, access_token, refresh_token)
        self.user = user
        self.access_token = access_token
        self.refresh_token = refresh_token

    def _authenticate(self, path, payload):
        data = self.api.post(path, payload)
        self.set_auth(data["user"], data["accessToken"], data["refreshToken"])
        return self.user

    def login(self, email: str, password: str):
        return self._authenticate("/auth/login", {"email": email, "password": password})

    def register(self, email: str, password: str, name: str, nrp: str | None = None):
        payload = {"email": email, "password": password, "name": name}
        if nrp:
            payload["nrp"] = nrp
        return self._authenticate("/auth/register", payload)

    def update_profile(self, **fields):
        user = self.api.patch("/users/profile", fields)
        self.set_auth({**(self.user or {}), **user}, self.access_token, self.refresh_token)
        return self.user

    def logout(self):
        """Revokes both tokens on the server if reachable, then tears down."""
        if self.access_token:
            payload = {"refreshToken": self.refresh_token} if self.refresh_token else None
            try:
                self.api.post("/auth/logout", json=payload)
            except (ApiError, NetworkError) as e:
                logger.info("Server logout failed, clearing local session anyway: %s", e)
        self.teardown()

    def teardown(self):
        self.store.clear()
        self._reset()

    def _reset(self):
        self.user = None
        self.access_token = None
        self.refresh_token = None
