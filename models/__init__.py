# -------------------------
# Enums
# -------------------------
from .enums import (
    BaseStrEnum,
    PermissionLevel,
    LegacyPermissionLevel,
    PageCapability,
    SessionState,
    MenuSection,
)

# -------------------------
# Page Models
# -------------------------
from .page import (
    PageDefinition,
    Page,
    PageEnabledUpdate,
    NavItem,
    NavSection,
    Navigation,
)

# -------------------------
# Role Models
# -------------------------
from .role import (
    RoleBase,
    RoleCreate,
    Role,
    RoleRename,
)

# -------------------------
# Permission Models
# -------------------------
from .permission import (
    PermissionRecord,
    PermissionLevelUpdate,
    PermissionBatchUpdate,
    UserPermissionSnapshot,
    PageCapabilities,
)
