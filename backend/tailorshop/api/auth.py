import hmac
import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException
from jose import jwt
from pydantic import BaseModel

from tailorshop.api.deps import ALGORITHM, get_settings, require_admin
from tailorshop.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginIn(BaseModel):
    email: str
    password: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


def create_access_token(settings: Settings, subject: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    return jwt.encode({"sub": subject, "role": "admin", "exp": expire}, settings.signing_key, algorithm=ALGORITHM)


def _matches(given: str, expected) -> bool:
    return bool(expected) and hmac.compare_digest(given.encode("utf-8"), str(expected).encode("utf-8"))


@router.post("/login", response_model=TokenOut)
def login(payload: LoginIn, settings: Settings = Depends(get_settings)):
    email = payload.email.strip().lower()
    expected_email = (settings.admin_email or "").strip().lower()
    if not (_matches(email, expected_email) and _matches(payload.password, settings.admin_password)):
        logger.warning("Admin login rejected email=%s", email)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    logger.info("Admin login email=%s", email)
    return {
        "access_token": create_access_token(settings, email),
        "token_type": "bearer",
        "expires_in": settings.access_token_expire_minutes * 60,
    }


@router.get("/session")
def session(admin: str = Depends(require_admin)):
    return {"email": admin, "role": "admin"}
