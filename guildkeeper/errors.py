"""
Error taxonomy for tool execution.

Every failure path inside a tool call raises one of the ToolError subclasses
below. Each subclass carries an ErrorKind tag so callers (and tests) can branch
on the category without string matching. Conversion to the single outward
message happens only at the dispatch boundary, in normalize_error().

    ArgumentValidationError   bad or missing input shape
    NotFoundError             no matching entity after best-effort refresh
    AmbiguousError            several equally valid matches
    AmbiguousContextError     no server given and the bot is not in exactly one
    ConflictError             mutation would be a no-op or a duplicate
    UnknownToolError          no tool registered under that name
    GatewayError              failure surfaced by the Discord API
"""

from __future__ import annotations

from enum import StrEnum

INVALID_ARGUMENTS_PREFIX = "Invalid arguments"
EXECUTION_FAILED_PREFIX = "Tool execution failed"


class ErrorKind(StrEnum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    AMBIGUOUS_CONTEXT = "ambiguous_context"
    CONFLICT = "conflict"
    UNKNOWN_TOOL = "unknown_tool"
    GATEWAY = "gateway"


class ToolError(Exception):
    """
    Base class for all expected tool failures.

    Args:
        message: Human-readable description, passed through to the caller
        cause: Underlying exception, if this error wraps one
    """

    kind: ErrorKind = ErrorKind.GATEWAY

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ArgumentValidationError(ToolError):
    """
    Raised when tool arguments do not match the declared shape.

    Carries every violation as a (path, message) pair, not just the first.
    """

    kind = ErrorKind.VALIDATION

    def __init__(self, issues: list[tuple[str, str]], cause: BaseException | None = None):
        self.issues = issues
        super().__init__(
            "; ".join(f"{path}: {message}" if path else message for path, message in issues),
            cause=cause,
        )


class NotFoundError(ToolError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, message: str, available: list[str] | None = None):
        super().__init__(message)
        self.available = available or []


class AmbiguousError(ToolError):
    """Several entities matched; `candidates` holds (name, id) for each."""

    kind = ErrorKind.AMBIGUOUS

    def __init__(self, message: str, candidates: list[tuple[str, str]]):
        super().__init__(message)
        self.candidates = candidates


class AmbiguousContextError(ToolError):
    kind = ErrorKind.AMBIGUOUS_CONTEXT

    def __init__(self, message: str, available: list[str]):
        super().__init__(message)
        self.available = available


class ConflictError(ToolError):
    kind = ErrorKind.CONFLICT


class UnknownToolError(ToolError):
    kind = ErrorKind.UNKNOWN_TOOL


class GatewayError(ToolError):
    """Raised when a Discord API call fails (permissions, network, 5xx)."""

    kind = ErrorKind.GATEWAY


def normalize_error(error: BaseException) -> str:
    """
    Convert any failure into the single message string shown to the caller.

    Validation errors list every violated field; everything else is wrapped
    with a fixed prefix and keeps the underlying message as the detail.
    """
    if isinstance(error, ArgumentValidationError):
        return f"{INVALID_ARGUMENTS_PREFIX}: {error.message}"
    if isinstance(error, ToolError):
        return f"{EXECUTION_FAILED_PREFIX}: {error.message}"
    detail = str(error) or type(error).__name__
    return f"{EXECUTION_FAILED_PREFIX}: {detail}"
