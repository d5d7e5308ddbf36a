"""
Safe JSON body helpers.

API responses are parsed leniently where a malformed body should degrade
rather than abort, and strictly where the caller cannot continue without it.
"""

import json
from typing import Any, Optional

import httpx

from appliance_deployer.core.exceptions import ApiError


def safe_json_body(response: Optional[httpx.Response]) -> Optional[Any]:
    """
    Decode a response body, returning None instead of raising.

    Args:
        response: Response object or None

    Returns:
        Decoded JSON value, or None when absent or not JSON
    """
    if response is None:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def require_json_body(
    response: httpx.Response, operation: str, expected_type: Optional[type] = dict
) -> Any:
    """
    Decode a successful response body or raise ApiError.

    Args:
        response: Response expected to carry a 2xx JSON body
        operation: Name of the API operation, used in the error message
        expected_type: Required type of the decoded value; None accepts any

    Returns:
        Decoded JSON value
    """
    if not response.is_success:
        raise ApiError(
            f"{operation} failed with status {response.status_code}",
            status_code=response.status_code,
            body=response.text,
        )
    body = safe_json_body(response)
    if body is None:
        raise ApiError(
            f"{operation} returned a body that is not JSON",
            status_code=response.status_code,
            body=response.text,
        )
    if expected_type is not None and not isinstance(body, expected_type):
        raise ApiError(
            f"{operation} returned a JSON {type(body).__name__}, "
            f"expected {expected_type.__name__}",
            status_code=response.status_code,
            body=response.text,
        )
    return body
