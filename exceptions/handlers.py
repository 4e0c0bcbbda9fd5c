from rest_framework.exceptions import APIException
from rest_framework import status
from rest_framework.views import exception_handler
from rest_framework.response import Response
from django.conf import settings
from django.core.exceptions import (
    ObjectDoesNotExist,
    ValidationError as DjangoValidationError,
)
from rest_framework.exceptions import ValidationError as DRFValidationError
from utils.constants import (
    BookingMessage,
    GeneralMessage,
    PaymentMessage,
)
import logging

logger = logging.getLogger("LOGGING")


def custom_exception_handler(exc, context):
    # Handle Django's DoesNotExist as 404
    if isinstance(exc, ObjectDoesNotExist):
        return Response(
            {"success": False, "error": "Not found."},
            status=status.HTTP_404_NOT_FOUND
        )

    # Handle Django and DRF validation errors as 400
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else exc.messages
        return Response(
            {"success": False, "error": detail},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, DRFValidationError):
        return Response(
            {"success": False, "error": exc.detail},
            status=status.HTTP_400_BAD_REQUEST,
        )

    # Fallback to DRF's default handler (for AuthenticationFailed, NotAuthenticated,
    # MethodNotAllowed, and our own APIException subclasses)
    response = exception_handler(exc, context)
    if response is not None:
        detail = exc.detail if isinstance(exc, APIException) else response.data
        response.data = {"success": False, "error": detail}
        return response

    # Catch-all for any other exception
    logger.exception(f"Unhandled error in {context.get('view').__class__.__name__}")
    body = {"success": False, "error": GeneralMessage.SOMETHING_WENT_WRONG}
    if settings.DEBUG:
        body["detail"] = str(exc)
    return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class AlreadyExistsException(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_code = "already_exists"


class NotFoundException(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "not_found"


class PermissionDeniedException(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "permission_denied"


class InvalidInputException(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = GeneralMessage.INVALID_INPUT
    default_code = "invalid_input"

class ChangeWindowClosedException(APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "change_window_closed"

class TransientFailureException(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = BookingMessage.TRANSIENT_FAILURE
    default_code = "transient_failure"

class PaymentGatewayException(APIException):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = PaymentMessage.GATEWAY_UNAVAILABLE
    default_code = "payment_gateway_error"
