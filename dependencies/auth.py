from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from supabase import Client

from core.config import settings
from core.supabase_client import get_supabase_client


bearer_scheme = HTTPBearer()


# ============================================================
# Current User Model (identity handed to the access engine)
# ============================================================
class CurrentUser(BaseModel):
    id: str
    email: str
    role: str

    full_name: Optional[str] = None


# ============================================================
# AUTH DECODING (Supabase: validates JWT + fetches metadata)
# ============================================================
def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> CurrentUser:

    token = credentials.credentials

    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    client: Client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")

    # ---------------------------------------------------------
    # Validate JWT via Supabase GoTrue
    # ---------------------------------------------------------
    try:
        auth_resp = client.auth.get_user(token)
        if not auth_resp or not auth_resp.user:
            raise unauthorized
        auth_user = auth_resp.user
    except Exception:
        raise unauthorized

    # ---------------------------------------------------------
    # Extract identity
    # ---------------------------------------------------------
    email = auth_user.email
    metadata = auth_user.user_metadata or {}

    if not email:
        raise unauthorized

    role = metadata.get("role") or settings.DEFAULT_USER_ROLE
    if not isinstance(role, str) or not role.strip():
        role = settings.DEFAULT_USER_ROLE

    return CurrentUser(
        id=auth_user.id,
        email=email,
        role=role.strip(),
        full_name=metadata.get("full_name"),
    )
