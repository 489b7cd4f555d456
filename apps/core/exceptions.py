"""
Custom exceptions and DRF exception handler for the financing engine.
"""

import logging
import re

from django.db import DatabaseError, IntegrityError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class InvalidInputError(APIException):
    """Raised when financing input is malformed or out of range."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'validation_error'


class ClientNotFoundError(APIException):
    """Raised when a client does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Client not found.'
    default_code = 'client_not_found'


class MotorcycleNotFoundError(APIException):
    """Raised when a motorcycle does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Motorcycle not found.'
    default_code = 'motorcycle_not_found'


class CurrentAccountNotFoundError(APIException):
    """Raised when a current account does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Current account not found.'
    default_code = 'account_not_found'


class AccountAlreadySettledError(APIException):
    """Raised when a payment targets an account that is already paid off."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Current account already settled.'
    default_code = 'account_already_settled'


class PersistenceError(APIException):
    """
    Raised when the storage layer rejects a write.

    Integrity violations are reported as 409 with the offending field
    when it can be identified; anything else is a 500.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Database error.'
    default_code = 'database_error'

    def __init__(self, detail=None, field=None, status_code=None):
        super().__init__(detail=detail)
        self.field = field
        if status_code is not None:
            self.status_code = status_code


def operation_failed(exc: APIException) -> dict:
    """Build the failure envelope returned at a service boundary."""
    result = {
        'success': False,
        'error_code': exc.get_codes(),
        'message': str(exc.detail),
        'status_code': exc.status_code,
    }
    field = getattr(exc, 'field', None)
    if field:
        result['field'] = field
    return result


def failure_response(result: dict) -> Response:
    """Render a failed service result in the API error format."""
    data = {
        'error': True,
        'status_code': result['status_code'],
        'code': result['error_code'],
        'detail': result['message'],
    }
    if result.get('field'):
        data['field'] = result['field']
    return Response(data, status=result['status_code'])


def custom_exception_handler(exc, context):
    """
    Custom DRF exception handler that returns consistent error responses.

    Handles all DRF exceptions and adds logging for server errors.
    """
    response = exception_handler(exc, context)

    if response is not None:
        error_data = {
            'error': True,
            'status_code': response.status_code,
            'detail': response.data,
        }
        response.data = error_data
    else:
        # Unhandled exceptions: log and return 500
        logger.exception(
            "Unhandled exception in %s",
            context.get('view', 'unknown'),
            exc_info=exc,
        )
        response = Response(
            {
                'error': True,
                'status_code': 500,
                'detail': 'An unexpected error occurred. Please try again later.',
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return response


FOREIGN_KEY_COLUMN = re.compile(r'Key \((?P<column>[^)=]+)\)=')


def persistence_error_from(exc: DatabaseError, known_constraints=()) -> PersistenceError:
    """
    Translate a database exception into a PersistenceError.

    ``known_constraints`` is a sequence of (marker, field, message)
    tuples. The first marker found in the driver's message (a constraint
    name or a column reference) names the offending field and replaces
    the message with a friendlier one.
    """
    raw_message = str(exc)

    if not isinstance(exc, IntegrityError):
        return PersistenceError(detail=f"Database error: {raw_message}")

    for marker, field, message in known_constraints:
        if marker in raw_message:
            return PersistenceError(
                detail=message,
                field=field,
                status_code=status.HTTP_409_CONFLICT,
            )

    match = FOREIGN_KEY_COLUMN.search(raw_message)
    field = match.group('column').strip() if match else None
    return PersistenceError(
        detail=f"Database constraint violated: {raw_message}",
        field=field,
        status_code=status.HTTP_409_CONFLICT,
    )
