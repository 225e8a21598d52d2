from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler


class ServiceError(Exception):
    """Base for errors raised by the service layer.

    Each subclass carries a stable `code` and the HTTP status the API layer
    should answer with. Services raise these and the DRF exception handler below
    turns them into responses.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'invalid'
    default_message = 'The request could not be processed.'

    def __init__(self, message=None, **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def as_dict(self):
        data = {'detail': self.message, 'code': self.code}
        data.update(self.extra)
        return data


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'not_found'
    default_message = 'Not found.'


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    code = 'conflict'
    default_message = 'The request conflicts with the current state.'


class TransientError(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = 'transient'
    default_message = 'Temporarily unavailable, please retry.'


def custom_exception_handler(exc, context):
    if isinstance(exc, ServiceError):
        return Response(exc.as_dict(), status=exc.status_code)

    response = exception_handler(exc, context)

    if response is not None and isinstance(response.data, dict):
        response.data['status_code'] = response.status_code

    return response
