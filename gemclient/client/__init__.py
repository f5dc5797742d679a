from . import constants, exceptions
from .client import async_fetch, async_perform_request, fetch, perform_request
from .constants import Category, StatusCode
from .dispatcher import (
    Body,
    DispatchOutcome,
    Failure,
    InputRequested,
    Redirect,
    UnhandledStatus,
    UnsupportedMediaType,
    dispatch,
)
from .header import ResponseHeader, read_header
from .request import build_request
from .tofu import SelfSignedCertFileStore, SelfSignedCertStore

__all__ = [
    "perform_request",
    "async_perform_request",
    "fetch",
    "async_fetch",
    "build_request",
    "read_header",
    "dispatch",
    "ResponseHeader",
    "Category",
    "StatusCode",
    "Body",
    "DispatchOutcome",
    "Failure",
    "InputRequested",
    "Redirect",
    "UnhandledStatus",
    "UnsupportedMediaType",
    "SelfSignedCertStore",
    "SelfSignedCertFileStore",
    "constants",
    "exceptions",
]
