"""
Domain exceptions for bills app.

Split errors are plain service errors the views translate; lookup, permission
and transition errors are DRF APIExceptions that render their own status code.
"""
from rest_framework.exceptions import APIException


class BillServiceError(Exception):
    """Base exception for bill service errors."""
    pass


class NoParticipantsError(BillServiceError):
    """Raised when a bill has nobody to split among."""
    pass


class InvalidSplitError(BillServiceError):
    """Raised when explicit shares don't add up or name non-members."""
    pass


class BillShareNotFoundError(APIException):
    status_code = 404
    default_detail = 'Share not found.'
    default_code = 'bill_share_not_found'


class InvalidStateTransitionError(APIException):
    """Transition not allowed from the share's current status."""
    status_code = 400
    default_detail = 'Invalid status transition for bill share.'
    default_code = 'invalid_state_transition'


class InsufficientPermissionsError(APIException):
    status_code = 403
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'insufficient_permissions'
