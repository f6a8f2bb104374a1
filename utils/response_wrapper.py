from functools import wraps
from typing import Any, Callable, Dict, Tuple

import structlog
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class ApiError(Exception):
    """Raised by a view to answer with a failure envelope."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={'success': False, 'message': message})


def response_wrapper(view: Callable[..., Tuple[int, Dict[str, Any]]]):
    """Turn a view's ``(status, body)`` result into a JSON envelope.

    ``ApiError`` becomes a failure envelope with its status. Anything else
    that escapes the view is logged and answered with a 500 so the worker
    keeps serving.
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            status_code, body = view(*args, **kwargs)
        except ApiError as e:
            return error_response(e.status_code, e.message)
        except Exception as e:
            logger.error("unhandled_view_error", view=view.__name__, error=str(e), exc_info=True)
            return error_response(500, f'An unexpected error occurred: {e}')
        return JSONResponse(status_code=status_code, content=body)

    return wrapper
