"""loreguard constants: naming markers, filesystem layout, and exit codes."""

from __future__ import annotations

from enum import IntEnum

# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    CONFIG_ERROR = 2
    PERMISSION_ERROR = 5


# ---------------------------------------------------------------------------
# Lorebook naming conventions
# ---------------------------------------------------------------------------

HIDDEN_MARKER = "#hidden#"  # anywhere in the name → admin-only
PERSONAL_PREFIX = "$$-"  # $$-<handle>-<name> → personal lorebook
HANDLE_SEPARATOR = "-"

DEFAULT_USER_HANDLE = "default-user"  # used when no account system is active
DEFAULT_ADMIN_HANDLES: frozenset[str] = frozenset({"admin", DEFAULT_USER_HANDLE})

# ---------------------------------------------------------------------------
# Filesystem layout
# ---------------------------------------------------------------------------

LOREGUARD_DIR_NAME = ".loreguard"
CONFIG_FILENAME = "config.toml"
TRACE_FILENAME = "access_decisions.jsonl"
