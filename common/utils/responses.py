"""
Response envelopes.

Success: ``{"success": true, "data": ..., "message": ...}``
Failure: ``{"success": false, "error": {"message", "kind", "code", "details"}}``

Optional keys are omitted rather than sent as null.
"""

from typing import Any, Dict, Optional


def success_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    response: Dict[str, Any] = {"success": True}
    if data is not None:
        response["data"] = data
    if message:
        response["message"] = message
    return response


def error_response(
    message: str,
    kind: Optional[str] = None,
    code: Optional[str] = None,
    details: Optional[Any] = None,
) -> Dict[str, Any]:
    """
    Args:
        message: Human-readable description
        kind: ErrorKind value, which clients can map to the HTTP status
        code: Specific machine-readable reason (e.g. "INVITE_EXPIRED")
        details: Extra payload, e.g. per-field validation errors
    """
    error: Dict[str, Any] = {"message": message}
    if kind:
        error["kind"] = kind
    if code:
        error["code"] = code
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error}
