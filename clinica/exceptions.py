import logging
from enum import IntEnum

from rest_framework import status as http_status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler, set_rollback

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = 'Erro interno do servidor'


class Status(IntEnum):
    BAD_REQUEST = http_status.HTTP_400_BAD_REQUEST
    UNAUTHORIZED = http_status.HTTP_401_UNAUTHORIZED
    FORBIDDEN = http_status.HTTP_403_FORBIDDEN
    NOT_FOUND = http_status.HTTP_404_NOT_FOUND
    CONFLICT = http_status.HTTP_409_CONFLICT
    INTERNAL_SERVER_ERROR = http_status.HTTP_500_INTERNAL_SERVER_ERROR
    BAD_GATEWAY = http_status.HTTP_502_BAD_GATEWAY


class AppError(APIException):
    """Domain error carrying the HTTP status it should be answered with."""

    def __init__(self, message: str, status: Status = Status.BAD_REQUEST):
        super().__init__(detail=message, code=status.name.lower())
        self.message = message
        self.status = status
        self.status_code = int(status)


def first_error_message(detail) -> str:
    """Return the first human readable message of a DRF error detail."""
    if isinstance(detail, dict):
        if not detail:
            return ''
        key, value = next(iter(detail.items()))
        msg = first_error_message(value)
        return msg if key in ('non_field_errors', 'detail') else f'{key}: {msg}'
    if isinstance(detail, (list, tuple)):
        return first_error_message(detail[0]) if detail else ''
    return str(detail)


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception('unhandled error in %s', getattr(view, '__name__', type(view).__name__))
        set_rollback()
        return Response({'message': INTERNAL_ERROR_MESSAGE}, status=Status.INTERNAL_SERVER_ERROR)
    if isinstance(exc, ValidationError):
        return Response(
            {'message': first_error_message(exc.detail), 'errors': exc.detail},
            status=resp.status_code,
        )
    detail = resp.data.get('detail') if isinstance(resp.data, dict) else resp.data
    return Response({'message': first_error_message(detail)}, status=resp.status_code, headers=_passthrough_headers(resp))


def _passthrough_headers(resp):
    # keep Retry-After / WWW-Authenticate set by DRF
    return {k: v for k, v in resp.headers.items() if k in ('Retry-After', 'WWW-Authenticate', 'Allow')}
