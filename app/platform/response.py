from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(
    *,
    data: Optional[Any] = None,
    message: str = "success",
    code: int = 200,
    http_status: int = status.HTTP_200_OK,
) -> JSONResponse:
    """
    Single source of truth for ALL API responses.

    The envelope ``code`` carries the outcome; the HTTP status stays 200 for
    every application-level result so clients must check ``code``.
    """
    return JSONResponse(
        status_code=http_status,
        content={
            "code": code,
            "message": message,
            "data": jsonable_encoder(data) if data is not None else None,
        },
    )
