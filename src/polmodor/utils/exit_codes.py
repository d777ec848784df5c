"""
Exit codes for Polmodor.

Semantic exit codes so scripts wrapping the CLI (status bars, shell hooks)
can tell what happened without parsing output.
"""

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or validation error
ERROR_INVALID_ARGS = 2

# Resource not found (task, subtask, config key)
ERROR_NOT_FOUND = 5

# Timer is locked against accidental interruption
ERROR_LOCKED = 7


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    code_names = {
        SUCCESS: "SUCCESS",
        ERROR_GENERAL: "ERROR_GENERAL",
        ERROR_INVALID_ARGS: "ERROR_INVALID_ARGS",
        ERROR_NOT_FOUND: "ERROR_NOT_FOUND",
        ERROR_LOCKED: "ERROR_LOCKED",
    }
    return code_names.get(code, f"UNKNOWN({code})")

