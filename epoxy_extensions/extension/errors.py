"""Extension request rejection errors."""

from __future__ import annotations


class ExtensionRequestError(Exception):
    """Base exception for requests rejected before any provisioning side effect."""

    error_code = "extension_request_error"
    status_code = 400


class MethodNotAllowedError(ExtensionRequestError):
    error_code = "method_not_allowed"
    status_code = 405


class BadRequestError(ExtensionRequestError):
    error_code = "bad_request"
    status_code = 400


class RequestTimeoutError(ExtensionRequestError):
    error_code = "stale_boot"
    status_code = 408
