"""Error taxonomy for the marketplace core.

Every rule violation is raised as one of these before anything is written,
so callers always get a specific error kind instead of a generic failure.
The DRF exception handler below turns them into ``{"error", "code"}``
responses, matching the shape the API has always used for errors.
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class MarketplaceError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'marketplace_error'
    default_message = 'The request could not be completed.'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_dict(self):
        return {'error': self.message, 'code': self.code}


class ValidationError(MarketplaceError):
    code = 'validation_error'
    default_message = 'Invalid input.'


class NotFound(MarketplaceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'not_found'
    default_message = 'Not found.'


class Forbidden(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = 'forbidden'
    default_message = 'You are not allowed to do this.'


class JobNotOpen(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    code = 'job_not_open'
    default_message = 'This job is no longer accepting bids.'


class InvalidState(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    code = 'invalid_state'
    default_message = 'This has already been processed.'


class DuplicateBid(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    code = 'duplicate_bid'
    default_message = 'You already have a bid on this job.'


class InvalidTransition(MarketplaceError):
    status_code = status.HTTP_409_CONFLICT
    code = 'invalid_transition'

    def __init__(self, current, requested, message=None):
        self.current = current
        self.requested = requested
        super().__init__(message or f"Cannot move job from '{current}' to '{requested}'.")

    def as_dict(self):
        data = super().as_dict()
        data.update({'current': self.current, 'requested': self.requested})
        return data


def marketplace_exception_handler(exc, context):
    if isinstance(exc, MarketplaceError):
        view = context.get('view')
        logger.info(f"{view.__class__.__name__ if view else 'view'} rejected request: {exc.code} ({exc.message})")
        return Response(exc.as_dict(), status=exc.status_code)
    return exception_handler(exc, context)
