from __future__ import annotations


class ErrorCode:
    INVALID_INPUT_FORMAT = "INVALID_INPUT_FORMAT"
    VANITY_NOT_FOUND = "VANITY_NOT_FOUND"
    PROFILE_PRIVATE = "PROFILE_PRIVATE"
    STEAM_API_ERROR = "STEAM_API_ERROR"
    EMPTY_LIBRARY = "EMPTY_LIBRARY"
    RATE_LIMITED = "RATE_LIMITED"


ALL_ERROR_CODES = frozenset(
    {
        ErrorCode.INVALID_INPUT_FORMAT,
        ErrorCode.VANITY_NOT_FOUND,
        ErrorCode.PROFILE_PRIVATE,
        ErrorCode.STEAM_API_ERROR,
        ErrorCode.EMPTY_LIBRARY,
        ErrorCode.RATE_LIMITED,
    }
)

# One line per code. Never derived from upstream error text.
ERROR_MESSAGES: dict[str, str] = {
    ErrorCode.INVALID_INPUT_FORMAT: "That doesn't look like a valid Steam ID or profile URL.",
    ErrorCode.VANITY_NOT_FOUND: "We couldn't find a Steam profile with that name.",
    ErrorCode.PROFILE_PRIVATE: "This Steam profile is private. The library must be set to public.",
    ErrorCode.STEAM_API_ERROR: "Steam's servers aren't responding. Try again later.",
    ErrorCode.EMPTY_LIBRARY: "This profile has no games, or the library is private.",
    ErrorCode.RATE_LIMITED: "Too many requests. Wait a moment and try again.",
}


def message_for(code: str | None) -> str:
    """
    User-facing message for an error code; unknown codes fall back to the upstream message.
    """
    if not code:
        return ""
    return ERROR_MESSAGES.get(code, ERROR_MESSAGES[ErrorCode.STEAM_API_ERROR])


def coerce_error_code(value: object) -> str:
    """
    Map an arbitrary value (e.g. from a remote JSON payload) onto a known error code.
    """
    s = str(value or "").strip()
    if s in ALL_ERROR_CODES:
        return s
    return ErrorCode.STEAM_API_ERROR


class StoreError(Exception):
    """Raised by persistence collaborators when a query or write fails."""
