from enum import Enum


class Role(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


# Roles allowed to revoke, renew and expire certificates
CERTIFICATE_ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})

# Roles allowed to issue, list and open any certificate
CERTIFICATE_STAFF_ROLES = frozenset({Role.INSTRUCTOR, Role.ADMIN, Role.SUPER_ADMIN})
