"""Response envelopes returned by StudioProject operations."""

from typing import Any, Dict, List, Optional


def is_success(result: Dict[str, Any]) -> bool:
    """Check if an operation envelope reports success."""
    return bool(result.get("ok"))


def success_response(
    data: Any = None,
    warnings: Optional[List[str]] = None
) -> Dict[str, Any]:
    """Create a successful response envelope.

    Args:
        data: The response data
        warnings: Optional list of warning messages (e.g. overlaps)

    Returns:
        ``{"ok": True, "data": ..., "warnings"?: [...]}``
    """
    response = {
        "ok": True,
        "data": data
    }

    if warnings:
        response["warnings"] = warnings

    return response


def error_response(
    message: str,
    code: Optional[str] = None
) -> Dict[str, Any]:
    """Create an error response envelope.

    Args:
        message: Error message
        code: Optional error code (see ``StudioError.code``)

    Returns:
        ``{"ok": False, "error": {"message", "code"?}}``
    """
    error = {"message": message}

    if code:
        error["code"] = code

    return {
        "ok": False,
        "error": error
    }


def error_from_exception(exc: Exception) -> Dict[str, Any]:
    """Error envelope for a raised StudioError (or any exception with a message)."""
    message = getattr(exc, "message", None) or str(exc)
    code = getattr(exc, "code", None)
    return error_response(message, code=code)
