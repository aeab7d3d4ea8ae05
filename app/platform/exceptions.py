import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.platform.response import api_response

logger = logging.getLogger(__name__)


class AppException(HTTPException):
    """
    Base class for every outcome reported through the response envelope.

    ``status_code`` is the envelope ``code``; the HTTP status of the response
    is always 200.
    """

    code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "服务器内部错误"

    def __init__(self, message: Optional[str] = None, data: Any = None):
        self.message = message or self.default_message
        self.data = data
        super().__init__(status_code=self.code, detail=self.message)

    def __str__(self) -> str:
        return self.message


class ValidationError(AppException):
    code = status.HTTP_400_BAD_REQUEST
    default_message = "请求参数错误"


class InvalidCodeError(AppException):
    code = status.HTTP_400_BAD_REQUEST
    default_message = "验证码无效"


class CodeExpiredError(AppException):
    code = status.HTTP_400_BAD_REQUEST
    default_message = "验证码已过期，请重新获取"


class CodeMismatchError(AppException):
    code = status.HTTP_400_BAD_REQUEST
    default_message = "验证码错误"


class UnauthorizedError(AppException):
    code = status.HTTP_401_UNAUTHORIZED
    default_message = "未授权"


class WrongCredentialsError(UnauthorizedError):
    default_message = "用户名或密码错误"


class InvalidTokenError(UnauthorizedError):
    default_message = "无效的令牌"


class ForbiddenError(AppException):
    code = status.HTTP_403_FORBIDDEN
    default_message = "无权访问"


class NotFoundError(AppException):
    code = status.HTTP_404_NOT_FOUND
    default_message = "资源不存在"


class ConflictError(AppException):
    code = status.HTTP_409_CONFLICT
    default_message = "资源冲突"


class TooManyAttemptsError(AppException):
    code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "尝试次数过多，请重新获取验证码"


class RateLimitedError(AppException):
    code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(
            f"请求过于频繁，请 {retry_after} 秒后重试",
            data={"retry_after": retry_after},
        )


class InternalError(AppException):
    code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "服务器内部错误"


class EmailDeliveryError(InternalError):
    default_message = "发送邮件失败"


def add_exception_handlers(app: FastAPI):
    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        if exc.code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return api_response(code=exc.code, message=exc.message, data=exc.data)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Framework-level failures (unknown route, wrong method) keep their HTTP status
        return api_response(
            code=exc.status_code,
            message=str(exc.detail) or "Error",
            http_status=exc.status_code,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return api_response(
            code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            message="请求参数错误",
            data={"errors": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return api_response(
            code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="服务器内部错误",
        )
