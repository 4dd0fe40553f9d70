"""Owner / front-desk session tokens (JWT) and cron trigger auth."""
import hmac
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from salon_crm.backend.config import get_settings

security = HTTPBearer(auto_error=False)

ROLE_OWNER = "owner"
ROLE_STAFF = "staff"


def secrets_match(provided: str | None, expected: str | None) -> bool:
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    s = get_settings()
    to_encode = data.copy()
    exp = expires_delta or timedelta(minutes=s.jwt_expire_minutes)
    to_encode.update({"exp": datetime.utcnow() + exp})
    return jwt.encode(to_encode, s.jwt_secret, algorithm=s.jwt_algorithm)


def create_session_token(role: str) -> str:
    return create_access_token({"sub": role, "role": role, "authenticated_at": int(datetime.utcnow().timestamp())})


def decode_token(token: str) -> Optional[dict]:
    s = get_settings()
    try:
        return jwt.decode(token, s.jwt_secret, algorithms=[s.jwt_algorithm])
    except JWTError:
        return None


def _session_from_credentials(credentials: HTTPAuthorizationCredentials | None) -> dict | None:
    if not credentials:
        return None
    payload = decode_token(credentials.credentials)
    if not payload or payload.get("role") not in (ROLE_OWNER, ROLE_STAFF):
        return None
    return payload


async def get_current_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    """Owner or front-desk session."""
    if not credentials:
        raise HTTPException(status_code=401, detail="Authentication required")
    payload = _session_from_credentials(credentials)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid token")
    return payload


async def require_owner(session: dict = Depends(get_current_session)) -> dict:
    if session.get("role") != ROLE_OWNER:
        raise HTTPException(status_code=403, detail="Owner access required")
    return session


async def require_cron_or_owner(
    x_cron_secret: str | None = Header(None),
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """Scheduler triggers send X-Cron-Secret; the owner may also run jobs by hand."""
    s = get_settings()
    if secrets_match(x_cron_secret, s.cron_secret):
        return "cron"
    payload = _session_from_credentials(credentials)
    if payload and payload.get("role") == ROLE_OWNER:
        return ROLE_OWNER
    raise HTTPException(status_code=401, detail="Authentication required")
