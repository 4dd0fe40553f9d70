"""Owner (password) and front-desk (PIN) login."""
import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from salon_crm.backend.auth import ROLE_OWNER, ROLE_STAFF, create_session_token, secrets_match
from salon_crm.backend.config import get_settings

router = APIRouter()
logger = logging.getLogger(__name__)


class OwnerLoginRequest(BaseModel):
    password: str


class StaffLoginRequest(BaseModel):
    pin: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str


@router.post("/owner/login", response_model=TokenResponse)
def owner_login(data: OwnerLoginRequest):
    if not secrets_match(data.password, get_settings().owner_password):
        logger.warning("owner login rejected")
        raise HTTPException(status_code=401, detail="Invalid password")
    return TokenResponse(access_token=create_session_token(ROLE_OWNER), role=ROLE_OWNER)


@router.post("/staff/login", response_model=TokenResponse)
def staff_login(data: StaffLoginRequest):
    if not secrets_match(data.pin, get_settings().frontdesk_pin):
        logger.warning("staff login rejected")
        raise HTTPException(status_code=401, detail="Invalid PIN")
    return TokenResponse(access_token=create_session_token(ROLE_STAFF), role=ROLE_STAFF)
