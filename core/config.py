from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "Page Access API"
    ENV: str = "development"

    # -------------------------------------------------
    # CORS
    # -------------------------------------------------
    FRONTEND_DOMAIN: Optional[str] = None
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (document store & auth)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None
    SUPABASE_JWT_SECRET: Optional[str] = None

    # -------------------------------------------------
    # Collections
    # -------------------------------------------------
    PAGE_CONTROLS_TABLE: str = "page_controls"
    ROLES_TABLE: str = "roles"
    ROLE_PERMISSIONS_TABLE: str = "role_permissions"

    # -------------------------------------------------
    # Access control
    # -------------------------------------------------
    # Role assumed when the identity provider has none on record
    DEFAULT_USER_ROLE: str = "employee"

    PERMISSION_WRITE_RETRIES: int = Field(
        5,
        ge=1,
        description="Optimistic-concurrency attempts for a permission record write",
    )

    # -------------------------------------------------
    # Model Config
    # -------------------------------------------------
    class Config:
        case_sensitive = True


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list after loading settings
# -------------------------------------------------
cors_origins = list(settings.BACKEND_CORS_ORIGINS)

if settings.FRONTEND_DOMAIN:
    domain = settings.FRONTEND_DOMAIN
    if not domain.startswith("http"):
        domain = f"https://{domain}"
    cors_origins.append(domain.rstrip("/"))

settings.BACKEND_CORS_ORIGINS = sorted(set(cors_origins))
