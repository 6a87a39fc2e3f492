import hmac
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from tailorshop.config import Settings
from tailorshop.services.pricing import PriceEngine
from tailorshop.services.sync import CollectionSync

ALGORITHM = "HS256"

security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_engine(request: Request) -> PriceEngine:
    return PriceEngine(get_settings(request).pricing)


def get_sync(request: Request, name: str) -> CollectionSync:
    return request.app.state.syncs[name]


def require_api_key(request: Request, apikey: Optional[str] = Header(None)) -> None:
    expected = get_settings(request).api_key
    if not apikey or not hmac.compare_digest(apikey, expected):
        raise HTTPException(status_code=401, detail="Invalid API key")


def require_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Missing auth token")
    settings = get_settings(request)
    try:
        payload = jwt.decode(credentials.credentials, settings.signing_key, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    subject = payload.get("sub")
    if not subject or payload.get("role") != "admin":
        raise HTTPException(status_code=401, detail="Invalid token")
    return subject
