"""
Response bodies shared by the HTTP endpoints.

Meta only looks at the status code of a webhook delivery, so the POST
handler always answers with WEBHOOK_ACK. Anything we refuse (a failed
verification handshake, an unhandled error) gets the error envelope:

    {"status": "error", "error": {"code": "...", "message": "...", "details": {...}}}
"""

from typing import Optional


WEBHOOK_ACK = {"status": "received"}


class ErrorCodes:
    # 403: hub.verify_token mismatch
    VERIFICATION_FAILED = "VERIFICATION_FAILED"

    # 500: unhandled exception in a request handler
    INTERNAL_ERROR = "INTERNAL_ERROR"


def error_response(code: str, message: str, details: Optional[dict] = None) -> dict:
    error = {"code": code, "message": message}
    if details:
        error["details"] = details
    return {"status": "error", "error": error}
