"""
Role and Permission Constants

Profiles carry a role and an explicit permission list. The list is seeded
from DEFAULT_ROLE_PERMISSIONS when a profile is created and can be edited by
administrators afterwards; checks read the stored list, never the role
defaults.

super_admin is the only role that bypasses the list.
"""

# =============================================================================
# ROLES
# =============================================================================

ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_STAFF = "staff"
ROLE_GUEST = "guest"

ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_MANAGER, ROLE_STAFF, ROLE_GUEST)

# Roles allowed to provision users, manage companies and run backups
ADMIN_ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN)


# =============================================================================
# PERMISSION DEFINITIONS
# =============================================================================

# Each permission is defined as: (code, name, description)
PERMISSION_DEFINITIONS = [
    ("create", "Create", "Create catalog entries, sales, purchases and returns"),
    ("read", "Read", "View inventory, sales, purchases and returns"),
    ("update", "Update", "Edit existing records and process returns"),
    ("delete", "Delete", "Delete records"),
    ("manage_users", "Manage Users", "Create, edit and deactivate user profiles"),
    ("manage_companies", "Manage Companies", "Create, edit and delete companies"),
    ("backup", "Backup & Restore", "Download backups and restore from them"),
]


DEFAULT_ROLE_PERMISSIONS = {
    ROLE_SUPER_ADMIN: [perm[0] for perm in PERMISSION_DEFINITIONS],
    ROLE_ADMIN: [
        "create",
        "read",
        "update",
        "delete",
        "manage_users",
        "manage_companies",
        "backup",
    ],
    ROLE_MANAGER: ["create", "read", "update", "delete"],
    ROLE_STAFF: ["create", "read", "update"],
    ROLE_GUEST: ["read"],
}


# =============================================================================
# PERMISSION HELPERS
# =============================================================================

def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permission_definition(code):
    """Get full definition for a permission code."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {"code": perm[0], "name": perm[1], "description": perm[2]}
    return None


def validate_permission_code(code):
    """Check if a permission code is valid."""
    return code in get_all_permission_codes()


def default_permissions_for(role):
    return list(DEFAULT_ROLE_PERMISSIONS.get(role, []))
