# kafala/api/errors.py

"""
Maps Kafala service errors to HTTP responses.

- KafalaNotFoundError        -> 404
- NoActiveSponsorshipError   -> 422
- ActiveSponsorshipExistsError -> 400 (+ the blocking sponsorship)
- KafalaValidationError      -> 400
"""

import logging

from rest_framework import status
from rest_framework.response import Response

from kafala.services.exceptions import (
    ActiveSponsorshipExistsError,
    KafalaNotFoundError,
    KafalaServiceError,
    NoActiveSponsorshipError,
)

logger = logging.getLogger("kafala.api")


def service_error_response(exc: KafalaServiceError) -> Response:
    logger.warning(
        "Request rejected by service",
        extra={"error": type(exc).__name__, "detail": str(exc)},
    )

    if isinstance(exc, KafalaNotFoundError):
        return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, NoActiveSponsorshipError):
        return Response({"detail": str(exc)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    if isinstance(exc, ActiveSponsorshipExistsError):
        return Response(
            {
                "detail": str(exc),
                "active_sponsorship": {
                    "id": str(exc.sponsorship_id) if exc.sponsorship_id else None,
                    "sponsor_id": str(exc.sponsor_id) if exc.sponsor_id else None,
                },
            },
            status=status.HTTP_400_BAD_REQUEST,
        )

    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
