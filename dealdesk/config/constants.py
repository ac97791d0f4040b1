# dealdesk/config/constants.py

# -----------------------------
# ROLES
# -----------------------------
ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)

# -----------------------------
# LISTING LIFECYCLE
# -----------------------------
LISTING_ACTIVE = "active"
LISTING_SOLD = "sold"
LISTING_WITHDRAWN = "withdrawn"

# -----------------------------
# DEAL LIFECYCLE
# -----------------------------
DEAL_PENDING = "pending"
DEAL_ACCEPTED = "accepted"
DEAL_REJECTED = "rejected"

# -----------------------------
# PASSWORDS
# -----------------------------
MIN_PASSWORD_LENGTH = 8
MAX_BCRYPT_BYTES = 72          # bcrypt hard limit

# -----------------------------
# PAGINATION
# -----------------------------
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 50

# -----------------------------
# AUDIT ACTIONS
# -----------------------------
AUDIT_USER_UPDATED = "USER_UPDATED"
AUDIT_USER_DELETED = "USER_DELETED"
AUDIT_LISTING_DELETED = "LISTING_DELETED"
AUDIT_DEAL_ACCEPTED = "DEAL_ACCEPTED"
AUDIT_DEAL_REJECTED = "DEAL_REJECTED"
