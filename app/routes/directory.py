from typing import Optional
from fastapi import APIRouter, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.db import get_backend
from app.services.dashboard_service import logo_display_url
from app.services.directory_service import DirectoryService, NOT_FOUND_MESSAGE

router = APIRouter(tags=["directory"])


def _listing(business) -> dict:
    payload = jsonable_encoder(business)
    payload["logo_display_url"] = logo_display_url(business.logo_url)
    return payload


@router.get("/businesses")
async def list_businesses(search: Optional[str] = Query(None, description="Match on name, email, city or service")):
    directory = DirectoryService(get_backend(), get_settings())
    businesses = await directory.list_businesses(search)
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "success": True,
            "data": {
                "count": len(businesses),
                "businesses": [_listing(b) for b in businesses],
            },
        },
    )


@router.get("/company/{company_id}")
async def get_company(company_id: str):
    directory = DirectoryService(get_backend(), get_settings())
    company, error = await directory.get_company(company_id)
    if company is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND if error == NOT_FOUND_MESSAGE else status.HTTP_502_BAD_GATEWAY,
            content={"success": False, "error": error},
        )
    return JSONResponse(status_code=status.HTTP_200_OK, content={"success": True, "data": _listing(company)})
