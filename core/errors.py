# core/errors.py

# ============================================================
# Access-control error taxonomy
# ============================================================
class AccessControlError(Exception):
    """Base class for errors raised by the page access engine."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateRoleError(AccessControlError):
    """Another role already holds this name (compared case-insensitively)."""

    def __init__(self, name: str):
        super().__init__(f"Role '{name}' already exists")
        self.name = name


class NotFoundError(AccessControlError):
    """Operation referenced an unknown page name or role id."""

    def __init__(self, kind: str, key: str):
        super().__init__(f"{kind} '{key}' not found")
        self.kind = kind
        self.key = key


class StoreWriteError(AccessControlError):
    """An administrative write did not reach the backing store. Safe to retry."""


# ============================================================
# Supabase error helpers
# ============================================================
def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: Supabase Auth / GoTrue errors
    if hasattr(error, "message"):
        try:
            return str(error.message)
        except Exception:
            pass

    # Case 2: Supabase errors with args (common)
    if hasattr(error, "args") and error.args:
        try:
            return str(error.args[0])
        except Exception:
            pass

    # Case 3: Plain string fallback
    try:
        return str(error)
    except Exception:
        return "Unknown Supabase error"


def store_write_error(error: Exception, operation: str) -> StoreWriteError:
    """Wrap a failed store write so the admin caller can report it and retry."""
    from core.logging_config import logger

    detail = extract_supabase_error(error)
    logger.error(f"{operation}: {detail}")
    return StoreWriteError(f"{operation}: {detail}")
