from fastapi import APIRouter, Cookie, Depends
from fastapi.responses import JSONResponse, RedirectResponse
from swimtrackr.database.supabase_client import AuthClientFactory, get_auth_client_factory, get_supabase
from swimtrackr.modules.auth.schemas import (
    LoginRequest, OtpRequest, VerifyOtpRequest, RegisterRequest, ResetPasswordRequest,
    TokenResponse, RegisterResponse, MessageResponse, MeResponse
)
from swimtrackr.modules.auth.service import AuthService, safe_redirect_path
from swimtrackr.config.navigation_config import compose_navigation
from swimtrackr.config.settings import settings
from swimtrackr.core.dependencies import ACCESS_TOKEN_COOKIE, get_access_token, get_current_profile
from swimtrackr.core.errors import LOGIN_PATH
from swimtrackr.core.roles import allowed_roles_for
from swimtrackr.modules.profiles.schemas import CurrentProfile
from supabase import Client
from typing import Optional

router = APIRouter(prefix="/auth", tags=["auth"])

GENERIC_EMAIL_MESSAGE = "If an account exists for this email, a message has been sent"
CODE_VERIFIER_COOKIE = "sb-code-verifier"
# Magic links expire after an hour
CODE_VERIFIER_MAX_AGE = 3600


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    auth_client_factory: AuthClientFactory = Depends(get_auth_client_factory)
) -> AuthService:
    return AuthService(supabase, auth_client_factory)


def _with_session_cookie(response, access_token: str):
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        access_token,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )
    return response


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a parent account"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Password login; the token is returned and set as the session cookie"""
    token = service.login(login_data)
    return _with_session_cookie(JSONResponse(token.model_dump()), token.access_token)


@router.post("/otp", response_model=MessageResponse)
async def request_magic_link(
    request: OtpRequest,
    service: AuthService = Depends(get_auth_service)
):
    code_verifier = service.send_magic_link(request.email, request.redirect_to)
    response = JSONResponse({"message": "Check your email for the sign-in link"})
    if code_verifier:
        response.set_cookie(
            CODE_VERIFIER_COOKIE,
            code_verifier,
            max_age=CODE_VERIFIER_MAX_AGE,
            httponly=True,
            secure=settings.is_production,
            samesite="lax",
        )
    return response


@router.post("/verify-otp", response_model=TokenResponse)
async def verify_otp(
    request: VerifyOtpRequest,
    service: AuthService = Depends(get_auth_service)
):
    token = service.verify_otp(request.email, request.token)
    return _with_session_cookie(JSONResponse(token.model_dump()), token.access_token)


@router.get("/callback")
async def auth_callback(
    code: Optional[str] = None,
    redirectTo: str = "/dashboard",
    code_verifier: Optional[str] = Cookie(None, alias=CODE_VERIFIER_COOKIE),
    service: AuthService = Depends(get_auth_service)
):
    """Magic link / OAuth landing: exchange the code, then continue to `redirectTo`"""
    if not code:
        return RedirectResponse(LOGIN_PATH, status_code=303)
    access_token = service.exchange_code(code, code_verifier)
    response = RedirectResponse(safe_redirect_path(redirectTo), status_code=303)
    response.delete_cookie(CODE_VERIFIER_COOKIE)
    return _with_session_cookie(response, access_token)


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    service.send_password_reset(request.email)
    return MessageResponse(message=GENERIC_EMAIL_MESSAGE)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    access_token: Optional[str] = Depends(get_access_token),
    service: AuthService = Depends(get_auth_service)
):
    service.logout(access_token)
    response = JSONResponse({"message": "Logged out successfully"})
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return response


@router.get("/me", response_model=MeResponse)
async def get_me(profile: CurrentProfile = Depends(get_current_profile)):
    """Current profile with the menu and assignable roles for the frontend"""
    return MeResponse(
        profile=profile,
        navigation=[entry.to_dict() for entry in compose_navigation(profile.role)],
        allowed_roles=allowed_roles_for(profile.role),
    )
