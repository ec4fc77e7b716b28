# backend/app/routes/business_profile/profile.py
from typing import AsyncIterator
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.db import get_backend
from app.models.business_profile import SERVICE_CHOICES, BusinessProfileUpdate, ProfileState, ProfileStatus
from app.routes.auth.auth import get_session_manager
from app.services.dashboard_service import LOGO_UPLOADED_MESSAGE, DashboardService, logo_display_url
from app.services.profile_gateway import ProfileGateway
from app.services.session_manager import SessionManager

router = APIRouter(tags=["business_profile"])


async def get_dashboard(manager: SessionManager = Depends(get_session_manager)) -> AsyncIterator[DashboardService]:
    if manager.identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not signed in")
    settings = get_settings()
    session = await manager.auth.get_session()
    dashboard = DashboardService(
        manager.identity,
        manager.resolver,
        ProfileGateway(get_backend(), settings),
        access_token=session.access_token if session else None,
    )
    dashboard.adopt(manager.profile_state)
    yield dashboard


def _state_payload(state: ProfileState) -> dict:
    payload = jsonable_encoder(state)
    if state.profile is not None:
        payload["logo_display_url"] = logo_display_url(state.profile.logo_url)
    return payload


def _setup_required_response(state: ProfileState) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"success": False, "error": state.message, "data": _state_payload(state)},
    )


@router.get("/profile")
async def get_profile(dashboard: DashboardService = Depends(get_dashboard)):
    """
    Business profile for the current user. When none is stored, a
    provisional default is returned in edit mode.
    """
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"success": True, "data": _state_payload(dashboard.state)},
    )


@router.get("/services")
async def list_service_choices():
    return {"success": True, "data": SERVICE_CHOICES}


@router.put("/profile")
async def save_profile(data: BusinessProfileUpdate, dashboard: DashboardService = Depends(get_dashboard)):
    """
    Create or update the current user's business profile.
    """
    try:
        if dashboard.state.status == ProfileStatus.setup_required:
            return _setup_required_response(dashboard.state)

        dashboard.begin_edit()
        dashboard.update_fields(data)
        result = await dashboard.save()

        if result.setup_required:
            return _setup_required_response(dashboard.state)
        if not result.success:
            return JSONResponse(
                status_code=status.HTTP_502_BAD_GATEWAY,
                content={"success": False, "error": result.message, "data": _state_payload(dashboard.state)},
            )

        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"success": True, "message": result.message, "data": _state_payload(dashboard.state)},
        )

    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(e)}
        )


@router.delete("/profile")
async def delete_profile(dashboard: DashboardService = Depends(get_dashboard)):
    """
    Delete the stored profile; a fresh provisional default takes its place.
    """
    try:
        result = await dashboard.delete()
        return JSONResponse(
            status_code=status.HTTP_200_OK if result.success else status.HTTP_502_BAD_GATEWAY,
            content={"success": result.success, "message": dashboard.state.message, "data": _state_payload(dashboard.state)},
        )

    except Exception as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(e)}
        )


@router.post("/profile/logo")
async def upload_logo(file: UploadFile = File(...), dashboard: DashboardService = Depends(get_dashboard)):
    """
    Encode an uploaded logo into the profile being edited. The logo is
    stored only when the profile is saved.
    """
    if dashboard.state.profile is None:
        return _setup_required_response(dashboard.state)

    content = await file.read()
    dashboard.begin_edit()
    state = dashboard.attach_logo(content, file.content_type or "")
    uploaded = state.message == LOGO_UPLOADED_MESSAGE
    return JSONResponse(
        status_code=status.HTTP_200_OK if uploaded else status.HTTP_400_BAD_REQUEST,
        content={"success": uploaded, "message": state.message, "data": _state_payload(state)},
    )
