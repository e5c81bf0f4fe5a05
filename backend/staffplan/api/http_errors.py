from __future__ import annotations

from fastapi import HTTPException

from staffplan.core.errors import (
    ConfigurationWriteError,
    StaffplanError,
    StoreNotFoundError,
    UpstreamUnavailable,
    ValidationError,
)


def http_error(exc: StaffplanError) -> HTTPException:
    if isinstance(exc, StoreNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, ConfigurationWriteError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, UpstreamUnavailable):
        return HTTPException(status_code=502, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))
