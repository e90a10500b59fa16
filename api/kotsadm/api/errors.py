"""HTTP errors rendered as ``{"error": ..., "success": false}``."""

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse


class APIError(HTTPException):
    """Base for errors returned to API clients."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class ForbiddenError(APIError):
    """Raised when a session may not perform the request."""

    def __init__(self, detail: str = "forbidden"):
        super().__init__(status.HTTP_403_FORBIDDEN, detail)


class NotFoundAPIError(APIError):
    """Raised when the requested record does not exist."""

    def __init__(self, detail: str = "not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class InternalServerError(APIError):
    """Raised for failures whose details must not reach the client."""

    def __init__(self, detail: str = "internal server error"):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"error": message, "success": False}
    )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return error_response(exc.status_code, exc.detail)


def install_exception_handlers(app: FastAPI) -> None:
    """Render API errors in the admin console error shape."""
    app.add_exception_handler(APIError, api_error_handler)
