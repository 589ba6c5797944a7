# Package exports - these allow cleaner imports like:
# from storefront.auth import get_current_user, require_admin
from storefront.auth.jwt_validator import jwt_validator
from storefront.auth.dependencies import get_current_user, require_admin
from storefront.auth.passwords import hash_password, verify_password
