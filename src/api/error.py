from fastapi import Request, status
from fastapi.responses import JSONResponse
from libs.result import Error
from src.domain.errors import CONFLICT_CODES


def status_code_for(error: Error) -> int:
    """HTTP status for a use case error code"""
    if error.code.endswith("_NOT_FOUND"):
        return status.HTTP_404_NOT_FOUND
    if error.code in CONFLICT_CODES:
        return status.HTTP_409_CONFLICT
    if error.code.endswith("_FAILED"):
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return status.HTTP_400_BAD_REQUEST


class ClientError(Exception):
    """Raised by routes to turn a use case Error into an HTTP error response"""

    def __init__(self, error: Error, status_code: int = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code or status_code_for(error)


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "code": exc.error.code,
                "message": exc.error.message,
            }
        },
    )
