import logging
import time
import uuid
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger("LOGGING")

TRACE_HEADER = "X-Trace-ID"


class RequestResponseLoggingMiddleware(MiddlewareMixin):
    """
    Middleware to log incoming requests and outgoing responses.

    Each request gets a trace id (taken from the caller's X-Trace-ID header
    when present) that is logged on both lines and echoed on the response.
    Bodies are never logged: they carry passenger identity documents and
    webhook signatures.
    """

    def process_request(self, request):
        """Log the basic info of the incoming request."""
        trace_id = request.headers.get(TRACE_HEADER) or str(uuid.uuid4())
        request.trace_id = trace_id
        request.started_at = time.monotonic()

        logger.info(
            f"Trace ID: {trace_id} | Request: {request.method} {request.path}"
        )
        return None

    def process_response(self, request, response):
        """Log the response status and duration for the same request."""
        trace_id = getattr(request, "trace_id", "N/A")
        started_at = getattr(request, "started_at", None)
        elapsed_ms = (
            int((time.monotonic() - started_at) * 1000) if started_at is not None else -1
        )
        user = getattr(request, "user", None)
        user_info = (
            f"{user.username} (ID: {user.id})"
            if user and user.is_authenticated
            else "anonymous"
        )

        logger.info(
            f"Trace ID: {trace_id} | Response: {response.status_code} | {elapsed_ms}ms | User: {user_info}"
        )
        response[TRACE_HEADER] = trace_id
        return response
