"""
Request tracing middleware for the marketplace.
"""

import uuid
from collections.abc import Callable

from django.http import HttpRequest, HttpResponse

from .logging import clear_request_id, set_request_id

REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'
MAX_REQUEST_ID_LENGTH = 64


class RequestIDMiddleware:
    """Add unique request ID for tracing; an upstream X-Request-ID is reused"""

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        incoming = request.META.get(REQUEST_ID_HEADER, '')
        request_id = incoming if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH else str(uuid.uuid4())
        request.META['REQUEST_ID'] = request_id
        set_request_id(request_id)

        try:
            response = self.get_response(request)
        finally:
            clear_request_id()

        # Add to response headers for debugging
        response['X-Request-ID'] = request_id
        return response
