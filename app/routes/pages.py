from fastapi import APIRouter, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.models.content import AWARD_CATEGORIES, AWARD_WINNERS, MEMBERSHIP_TIERS
from app.models.forms import ContactForm, NominationForm
from app.services.forms_service import forms_service

router = APIRouter(tags=["pages"])


@router.get("/pages/membership")
async def membership_tiers():
    return {"success": True, "data": jsonable_encoder(MEMBERSHIP_TIERS)}


@router.get("/pages/awards")
async def awards():
    return {
        "success": True,
        "data": {
            "categories": jsonable_encoder(AWARD_CATEGORIES),
            "winners": jsonable_encoder(AWARD_WINNERS),
        },
    }


@router.post("/awards/nominate", status_code=status.HTTP_202_ACCEPTED)
async def nominate(form: NominationForm):
    receipt = forms_service.submit_nomination(form)
    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content={"success": True, "data": jsonable_encoder(receipt)},
    )


@router.post("/contact", status_code=status.HTTP_202_ACCEPTED)
async def contact(form: ContactForm):
    receipt = forms_service.submit_contact(form)
    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content={"success": True, "data": jsonable_encoder(receipt)},
    )
