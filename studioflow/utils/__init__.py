"""Utility helpers."""

from .response import error_from_exception, error_response, is_success, success_response

__all__ = [
    "is_success",
    "success_response",
    "error_response",
    "error_from_exception",
]
