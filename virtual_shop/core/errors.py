"""Error kinds raised by the storage layer and the handlers that turn them
into the ``{"success": false, "error": ...}`` envelope."""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ShopError(Exception):
    status_code = 500
    default_message = 'Operation failed'

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details


class ConnectionFailure(ShopError):
    default_message = 'Database connection failed'


class ValidationFailed(ShopError):
    status_code = 400
    default_message = 'Invalid request'


class NotFound(ShopError):
    status_code = 404
    default_message = 'Not found'


class ForeignKeyViolation(ShopError):
    status_code = 400

    def __init__(self, field: str, entity: str):
        super().__init__(f'Invalid {field}: {entity} does not exist')
        self.field = field
        self.entity = entity


class InUse(ShopError):
    status_code = 409
    default_message = 'Resource is in use'


class UploadRejected(ShopError):
    status_code = 400
    default_message = 'Upload rejected'


class ObjectStoreFailure(ShopError):
    default_message = 'Object storage operation failed'


def error_body(message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {'success': False, 'error': message}
    if details:
        body['details'] = details
    return body


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        # drop the "body"/"query"/"path" prefix
        loc = [str(p) for p in err.get('loc', ())[1:]] or [str(p) for p in err.get('loc', ())]
        field = '.'.join(loc)
        msg = err.get('msg', 'invalid value')
        parts.append(f'{field}: {msg}' if field else msg)
    return '; '.join(parts) or 'Invalid request'


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ShopError)
    async def _shop_error(request: Request, exc: ShopError):
        if exc.status_code >= 500:
            logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message, exc.details))

    @app.exception_handler(HTTPException)
    async def _http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)))

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=error_body(_describe_validation(exc)))

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        logger.exception('Unhandled error on %s %s', request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body('Operation failed'))
