"""Internal constants shared across the library."""

API_URL = "https://api.github.com"
ACCEPT = "application/vnd.github.v3+json"
USER_AGENT = "platestore"
DEFAULT_BRANCH = "main"
RECORDS_DIR = "plates"
RECORD_SUFFIX = ".json"

# The contents API answers a PUT carrying a stale ``sha`` with 409.
CONFLICT_STATUS_CODES: frozenset[int] = frozenset({409})
