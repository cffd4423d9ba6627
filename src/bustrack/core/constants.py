"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# String field lengths
MAX_EMAIL_LENGTH = 254
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100
MIN_LICENSE_PLATE_LENGTH = 3
MAX_LICENSE_PLATE_LENGTH = 20
MAX_UNIT_NAME_LENGTH = 50

# Password requirements
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
BCRYPT_ROUNDS = 10

# Coordinate bounds
MIN_LATITUDE = -90.0
MAX_LATITUDE = 90.0
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0

# Pagination defaults
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Token settings
ACCESS_TOKEN_JTI_LENGTH = 16
JWT_ISSUER = "bustrack-sv"
JWT_AUDIENCE = "bustrack-api"
BEARER_PREFIX = "Bearer "

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"

# Store collections
USERS_COLLECTION = "users"
BUSES_COLLECTION = "buses"
