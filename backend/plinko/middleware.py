"""Middleware for error handling."""
import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from plinko.errors import ErrorCode, GameError
from plinko.logic.exceptions import EngineError


logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Convert exceptions to protocol-compliant error responses."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except GameError as e:
            return e.to_response()
        except EngineError as e:
            return GameError(ErrorCode.INVALID_REQUEST, str(e)).to_response()
        except Exception as e:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            error = GameError(ErrorCode.INTERNAL_ERROR, str(e))
            return error.to_response()
