from shared.constants.roles import CERTIFICATE_ADMIN_ROLES, CERTIFICATE_STAFF_ROLES, Role

__all__ = ["CERTIFICATE_ADMIN_ROLES", "CERTIFICATE_STAFF_ROLES", "Role"]
