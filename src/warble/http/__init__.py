"""HTTP primitives — immutable Request and Response, body parsing."""

from warble.http.forms import UploadFile, parse_body
from warble.http.headers import Headers
from warble.http.query import QueryParams
from warble.http.request import Request
from warble.http.response import (
    Response,
    error,
    html,
    json_response,
    not_found,
    redirect,
    server_error,
    success,
    text,
    to_response,
    validation_error,
)

__all__ = [
    "Headers",
    "QueryParams",
    "Request",
    "Response",
    "UploadFile",
    "error",
    "html",
    "json_response",
    "not_found",
    "parse_body",
    "redirect",
    "server_error",
    "success",
    "text",
    "to_response",
    "validation_error",
]
