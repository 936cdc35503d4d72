"""
Structured error codes for alignment import failures.
Collected per file by railmap.core.io; map to user-facing messages for reports.
"""

# Known error keys
READ_FAILED = "read_failed"
MISSING_KEY = "missing_key"
UNKNOWN_ROLE = "unknown_role"
MISSING_WAY = "missing_way"
ILLEGAL_WAY_TYPE = "illegal_way_type"
EMPTY_WAY = "empty_way"
NON_CONTIGUOUS = "non_contiguous"
MISSING_NODE = "missing_node"
INVALID_PRE = "invalid_pre"
INVALID_POST = "invalid_post"
INVALID_COORDINATES = "invalid_coordinates"
DUPLICATE_NAME = "duplicate_name"
EMPTY_PATH = "empty_path"
DUPLICATE_KEY = "duplicate_key"

# User-facing messages (short, actionable)
USER_MESSAGES: dict[str, str] = {
    READ_FAILED: "Alignment file could not be read. Check that it is valid JSON.",
    MISSING_KEY: "Path has no 'key'. Every path needs a unique key.",
    UNKNOWN_ROLE: "Way member has an unknown role. Use '' or 'reverse'.",
    MISSING_WAY: "Path references a way that is not defined in the file.",
    ILLEGAL_WAY_TYPE: "Way has an illegal type. Use 'curved', 'arc' or 'straight'.",
    EMPTY_WAY: "Way has no nodes.",
    NON_CONTIGUOUS: "Ways do not connect. The last node of a way must be the first node of the next.",
    MISSING_NODE: "Way references a node that is not defined in the file.",
    INVALID_PRE: "Node has an invalid 'pre' tension. Use a positive number.",
    INVALID_POST: "Node has an invalid 'post' tension. Use a positive number.",
    INVALID_COORDINATES: "Node has missing or invalid 'lon'/'lat'.",
    DUPLICATE_NAME: "Two nodes in the same path share a name.",
    EMPTY_PATH: "Path has no nodes.",
    DUPLICATE_KEY: "Path key is already used by another path.",
}


def user_message(error_key: str | None, fallback: str = "Something went wrong.") -> str:
    """Return a user-facing message for the given error key."""
    if not error_key:
        return fallback
    return USER_MESSAGES.get(error_key, fallback)
