from fastapi import HTTPException, status

from shortlink_app.services.results import ErrorKind, ServiceError

ERROR_STATUS = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.EXPIRED: status.HTTP_410_GONE,
    ErrorKind.CAPACITY_EXHAUSTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def http_error(error: ServiceError) -> HTTPException:
    """HTTPException carrying the error kind, reason and per-field reasons"""
    return HTTPException(status_code=ERROR_STATUS[error.kind], detail=error.to_dict())
