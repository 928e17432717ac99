# models/role.py

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, validator


# -------------------------------------------------
# Shared fields
# -------------------------------------------------
class RoleBase(BaseModel):
    name: str
    description: Optional[str] = ""


# -------------------------------------------------
# Create
# -------------------------------------------------
class RoleCreate(RoleBase):
    """
    Used when creating a role in Supabase.
    No ID supplied; Supabase generates UUID.
    """
    pass


# -------------------------------------------------
# Read (Supabase → API response)
# -------------------------------------------------
class Role(RoleBase):
    id: str
    created_at: Optional[datetime] = None

    # Normalize UUID → str always
    @validator("id", pre=True)
    def normalize_id(cls, v):
        if isinstance(v, UUID):
            return str(v)
        return str(v)

    # Parse trailing Z timestamps
    @validator("created_at", pre=True)
    def normalize_created_at(cls, v):
        if isinstance(v, str) and v.endswith("Z"):
            return v.replace("Z", "+00:00")
        return v


# -------------------------------------------------
# Rename (PATCH)
# -------------------------------------------------
class RoleRename(BaseModel):
    name: str
