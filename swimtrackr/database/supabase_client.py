from typing import Callable, Optional
from supabase import create_client, Client, ClientOptions
from swimtrackr.config.settings import settings


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_anon_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Use for admin-only writes and scripts."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def create_auth_client(storage=None) -> Client:
    """
    Short-lived client for one sign-in flow. Signing in on the shared client
    would store that user's session (and PKCE verifier) for every request,
    so auth flows never touch it.
    """
    options = {"persist_session": False, "auto_refresh_token": False, "flow_type": "pkce"}
    if storage is not None:
        options["storage"] = storage
    return create_client(settings.supabase_url, settings.supabase_anon_key, options=ClientOptions(**options))


AuthClientFactory = Callable[[Optional[object]], Client]


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_auth_client_factory() -> AuthClientFactory:
    return create_auth_client
