from functools import lru_cache

from shared.auth.dependencies import get_current_user_required, require_roles
from shared.constants import CERTIFICATE_ADMIN_ROLES, CERTIFICATE_STAFF_ROLES

from certification.config import Settings


@lru_cache
def get_settings() -> Settings:
    return Settings()


get_current_user = get_current_user_required
get_certificate_admin = require_roles(CERTIFICATE_ADMIN_ROLES)
get_certificate_staff = require_roles(CERTIFICATE_STAFF_ROLES)
