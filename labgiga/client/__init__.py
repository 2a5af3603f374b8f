from labgiga.client.api import ApiClient, ApiError, NetworkError
from labgiga.client.session import AuthSession
from labgiga.client.token_store import TokenStore

__all__ = ["ApiClient", "ApiError", "NetworkError", "AuthSession", "TokenStore"]
