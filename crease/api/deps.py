"""
Shared route helpers
"""
from fastapi import HTTPException, status

from crease.errors import (
    CreaseError, LockError, MatchNotFound, StoreError, TournamentNotFound, ValidationError,
)

_STATUS_CODES = [
    (LockError, status.HTTP_409_CONFLICT),
    (MatchNotFound, status.HTTP_404_NOT_FOUND),
    (TournamentNotFound, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (StoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def http_error(error: CreaseError) -> HTTPException:
    """HTTPException for an engine failure"""
    for error_type, code in _STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=code, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))
