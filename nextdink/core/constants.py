"""Global constants for the nextdink application."""

# Collection names
EVENTS_COLLECTION = "events"
USERS_COLLECTION = "users"
LISTS_COLLECTION = "lists"
LIST_MEMBERS_COLLECTION = "members"
NOTIFICATIONS_COLLECTION = "notifications"

# Firestore limits
FIRESTORE_BATCH_LIMIT = 400
FIRESTORE_IN_QUERY_LIMIT = 30
FIRESTORE_TRANSACTION_ATTEMPTS = 5

# Event codes
EVENT_CODE_LENGTH = 5
EVENT_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
EVENT_CODE_MAX_ATTEMPTS = 10

# Event defaults
DEFAULT_TEAM_SIZE = 1
DEFAULT_MAX_TEAMS = 8
MAX_TEAM_SIZE = 8
MAX_EVENT_NAME_LENGTH = 100
MAX_GUEST_NAME_LENGTH = 50
MAX_LIST_NAME_LENGTH = 60
GUEST_DISPLAY_NAME = "Guest"
UNKNOWN_USER_DISPLAY_NAME = "Unknown player"

# Event enums
VISIBILITY_PUBLIC = "public"
VISIBILITY_CODE = "code"
VISIBILITY_PRIVATE = "private"
VISIBILITIES = (VISIBILITY_PUBLIC, VISIBILITY_CODE, VISIBILITY_PRIVATE)

JOIN_TYPE_OPEN = "open"
JOIN_TYPE_INVITE_ONLY = "invite_only"
JOIN_TYPES = (JOIN_TYPE_OPEN, JOIN_TYPE_INVITE_ONLY)

EVENT_STATUS_ACTIVE = "active"
EVENT_STATUS_CANCELED = "canceled"

# Member slot types
MEMBER_TYPE_USER = "user"
MEMBER_TYPE_GUEST = "guest"
MEMBER_TYPE_OPEN = "open"

# Registration results
REGISTRATION_JOINED = "joined"
REGISTRATION_WAITLISTED = "waitlisted"

# Listing limits
PUBLIC_EVENTS_LIMIT = 20
USER_SEARCH_LIMIT = 10
NOTIFICATIONS_LIMIT = 50
