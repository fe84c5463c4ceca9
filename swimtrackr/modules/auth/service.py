from supabase import Client
from swimtrackr.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from swimtrackr.config.settings import settings
from swimtrackr.core.errors import AuthenticationMissing, DEFAULT_VIEW_PATH, UpstreamQueryFailure
from swimtrackr.core.roles import Role
from swimtrackr.database.supabase_client import AuthClientFactory, create_auth_client
from fastapi import HTTPException
from typing import Dict, Optional
from urllib.parse import quote
import logging

logger = logging.getLogger(__name__)

CODE_VERIFIER_SUFFIX = "-code-verifier"


def safe_redirect_path(path: str) -> str:
    """Only same-site absolute paths are followed after sign-in"""
    if not path or not path.startswith("/") or path.startswith("//"):
        return DEFAULT_VIEW_PATH
    return path


def _token_response(auth_response, fallback_email: str) -> TokenResponse:
    if not auth_response or not auth_response.user or not auth_response.session:
        raise AuthenticationMissing("Invalid credentials")
    return TokenResponse(
        access_token=auth_response.session.access_token,
        token_type="bearer",
        user_id=auth_response.user.id,
        email=auth_response.user.email or fallback_email
    )


class FlowStorage:
    """Auth storage for a single flow; keeps the PKCE verifier so it can travel in a cookie"""

    def __init__(self):
        self.items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)

    @property
    def code_verifier(self) -> Optional[str]:
        return next((v for k, v in self.items.items() if k.endswith(CODE_VERIFIER_SUFFIX)), None)


class AuthService:
    def __init__(self, supabase: Client, auth_client_factory: AuthClientFactory = create_auth_client):
        self.supabase = supabase
        self.auth_client_factory = auth_client_factory

    def _auth(self, storage: Optional[FlowStorage] = None):
        return self.auth_client_factory(storage).auth

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Sign up a parent account and create its profile row"""
        try:
            user_metadata = {"role": Role.PARENT.value}
            if register_data.full_name:
                user_metadata["full_name"] = register_data.full_name

            auth_response = self._auth().sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata,
                    "email_redirect_to": f"{settings.site_url}/auth/callback"
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            self.supabase.table("profiles").upsert({
                "id": auth_response.user.id,
                "email": register_data.email,
                "full_name": register_data.full_name,
                "role": Role.PARENT.value,
            }).execute()

            logger.info(f"Registered parent account {auth_response.user.id}")
            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                message="Check your email to confirm your account"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            logger.error(f"Registration failed: {error_message}")
            raise UpstreamQueryFailure()

    def login(self, login_data: LoginRequest) -> TokenResponse:
        try:
            auth_response = self._auth().sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
            return _token_response(auth_response, login_data.email)
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise AuthenticationMissing("Invalid email or password")
            logger.error(f"Login failed: {error_message}")
            raise UpstreamQueryFailure()

    def send_magic_link(self, email: str, redirect_to: str) -> Optional[str]:
        """
        Email a sign-in link that lands on the callback, then on `redirect_to`.
        Returns the PKCE code verifier the callback needs to finish the flow.
        """
        target = quote(safe_redirect_path(redirect_to), safe="/")
        storage = FlowStorage()
        try:
            self._auth(storage).sign_in_with_otp({
                "email": email,
                "options": {
                    "email_redirect_to": f"{settings.site_url}/auth/callback?redirectTo={target}"
                }
            })
        except Exception as e:
            logger.error(f"Magic link request failed for {email}: {e}")
            raise UpstreamQueryFailure()
        return storage.code_verifier

    def verify_otp(self, email: str, token: str) -> TokenResponse:
        try:
            auth_response = self._auth().verify_otp({
                "email": email,
                "token": token,
                "type": "email"
            })
        except Exception as e:
            logger.warning(f"OTP verification failed for {email}: {e}")
            raise AuthenticationMissing("Invalid or expired code")
        return _token_response(auth_response, email)

    def exchange_code(self, code: str, code_verifier: Optional[str] = None) -> str:
        """Trade a callback code for a session; returns the access token"""
        params = {"auth_code": code}
        if code_verifier:
            params["code_verifier"] = code_verifier
        try:
            auth_response = self._auth(FlowStorage()).exchange_code_for_session(params)
        except Exception as e:
            logger.warning(f"Code exchange failed: {e}")
            raise AuthenticationMissing("Invalid or expired sign-in link")
        if not auth_response or not auth_response.session:
            raise AuthenticationMissing("Invalid or expired sign-in link")
        return auth_response.session.access_token

    def send_password_reset(self, email: str) -> None:
        try:
            self._auth().reset_password_for_email(
                email,
                {"redirect_to": f"{settings.site_url}/auth/update-password"}
            )
        except Exception as e:
            logger.error(f"Password reset request failed for {email}: {e}")
            raise UpstreamQueryFailure()

    def logout(self, access_token: Optional[str] = None) -> bool:
        """Revoke the caller's refresh tokens; the cookie is cleared by the route either way"""
        if not access_token:
            return True
        try:
            self._auth().admin.sign_out(access_token)
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False
