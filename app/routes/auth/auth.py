from typing import AsyncIterator, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer

from app.config import _now_utc, get_settings
from app.db import get_backend
from app.models.content import membership_status
from app.models.identity import AuthResult, ResetPasswordRequest, Session, SignInRequest, SignUpRequest
from app.services.auth_client import AuthClient, session_from_access_token
from app.services.backend_errors import BackendError, BackendErrorCode
from app.services.profile_resolver import ProfileResolver
from app.services.session_manager import SessionManager

router = APIRouter(tags=["auth"])

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

_ERROR_STATUS = {
    BackendErrorCode.validation.value: status.HTTP_400_BAD_REQUEST,
    BackendErrorCode.duplicate_account.value: status.HTTP_409_CONFLICT,
    BackendErrorCode.unconfirmed_account.value: status.HTTP_409_CONFLICT,
    BackendErrorCode.invalid_credentials.value: status.HTTP_401_UNAUTHORIZED,
    BackendErrorCode.unauthorized.value: status.HTTP_401_UNAUTHORIZED,
    BackendErrorCode.not_configured.value: status.HTTP_503_SERVICE_UNAVAILABLE,
    BackendErrorCode.unreachable.value: status.HTTP_502_BAD_GATEWAY,
}


def auth_error_response(result: AuthResult) -> JSONResponse:
    status_code = _ERROR_STATUS.get(result.error.code, status.HTTP_400_BAD_REQUEST)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": result.error.message, "code": result.error.code},
    )


async def get_current_session(token: str = Depends(oauth2_scheme)) -> Session:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    settings = get_settings()
    try:
        return await session_from_access_token(get_backend(), token, settings.supabase_jwt_secret)
    except BackendError as exc:
        if exc.code == BackendErrorCode.not_configured:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message)
        if exc.code == BackendErrorCode.unreachable:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.message)
        raise credentials_exception


def build_session_manager(session: Optional[Session] = None) -> SessionManager:
    settings = get_settings()
    backend = get_backend()
    return SessionManager(AuthClient(backend, session), ProfileResolver(backend, settings), settings)


async def get_session_manager(session: Session = Depends(get_current_session)) -> AsyncIterator[SessionManager]:
    """Started SessionManager for the bearer of the request; stopped after the response."""
    manager = build_session_manager(session)
    await manager.start()
    try:
        yield manager
    finally:
        manager.stop()


# -----------------------
# Routes
# -----------------------
@router.post("/signup")
async def signup(body: SignUpRequest):
    try:
        manager = build_session_manager()
        result = await manager.sign_up(body.email, body.password, body.company_name, body.company_url)
        if not result.ok:
            return auth_error_response(result)

        return JSONResponse(
            status_code=status.HTTP_201_CREATED,
            content={
                "success": True,
                "message": "Account created successfully! Please check your email to verify your account.",
                "data": jsonable_encoder({"user": result.identity, "session": result.session}),
            },
        )

    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(e)}
        )


@router.post("/login")
async def login(credentials: SignInRequest):
    try:
        manager = build_session_manager()
        result = await manager.sign_in(credentials.email, credentials.password)
        if not result.ok:
            return auth_error_response(result)

        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={
                "success": True,
                "data": jsonable_encoder({
                    "user": result.identity,
                    "access_token": result.session.access_token,
                    "refresh_token": result.session.refresh_token,
                    "expires_at": result.session.expires_at,
                }),
            },
        )

    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(e)}
        )


@router.post("/logout")
async def logout(session: Session = Depends(get_current_session)):
    manager = build_session_manager(session)
    await manager.sign_out()
    return JSONResponse(status_code=status.HTTP_200_OK, content={"success": True})


@router.post("/reset-password")
async def reset_password(body: ResetPasswordRequest):
    try:
        manager = build_session_manager()
        result = await manager.reset_password(body.email)
        if not result.ok:
            return auth_error_response(result)

        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"success": True, "message": "Password reset email sent. Please check your inbox."},
        )

    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(e)}
        )


@router.get("/me")
async def get_current_user_details(manager: SessionManager = Depends(get_session_manager)):
    """
    Current identity with membership status and business profile state.
    Requires a valid access token.
    """
    if manager.identity is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"success": False, "error": "User not found"}
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "success": True,
            "data": jsonable_encoder({
                "user": manager.identity,
                "membership_status": membership_status(manager.identity, _now_utc()),
                "profile": manager.profile_state,
            }),
        },
    )
