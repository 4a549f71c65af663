"""Named constants shared across Spica Sync."""

# -----------------------------------------------------------------------------
# Resource identity
# -----------------------------------------------------------------------------

# Identity field every Spica document carries
DEFAULT_IDENTITY_FIELD: str = "_id"

# -----------------------------------------------------------------------------
# Module names
# -----------------------------------------------------------------------------

FUNCTION_MODULE: str = "function"
BUCKET_MODULE: str = "bucket"
BUCKET_DATA_MODULE: str = "bucket-data"

DEPENDENCY_SUB_MODULE: str = "dependency"
INDEX_SUB_MODULE: str = "index"

# -----------------------------------------------------------------------------
# Function policy
# -----------------------------------------------------------------------------

# Field holding function environment variables, excluded from sync by default
FUNCTION_ENV_FIELD: str = "env"

# Derived field of a dependency entry (resolved type definitions)
DEPENDENCY_TYPES_FIELD: str = "types"

# Leading characters of a semver range that npm install specs must not carry
VERSION_RANGE_PREFIXES: str = "^~"

# -----------------------------------------------------------------------------
# Execution
# -----------------------------------------------------------------------------

DEFAULT_MAX_CONCURRENT_OPERATIONS: int = 20

# Transport retry policy for network errors and timeouts
TRANSPORT_RETRY_ATTEMPTS: int = 3
TRANSPORT_RETRY_MIN_WAIT: float = 1.0
TRANSPORT_RETRY_MAX_WAIT: float = 8.0
