"""
Domain exceptions for analytics app.

These exceptions are raised by the analytics query layer and represent
invalid requests, separate from HTTP concerns.

Exception Hierarchy:
    AnalyticsServiceError (base)
    └── InvalidRangeError

Usage:
    from apps.analytics.exceptions import InvalidRangeError

    if range_name not in VALID_RANGES:
        raise InvalidRangeError(f"Invalid range: {range_name}")
"""


class AnalyticsServiceError(Exception):
    """
    Base exception for all analytics service errors.

    Catch this in views to turn any analytics error into a 400:

        try:
            data = AnalyticsQueries.cached_room_dashboard(room, range_name)
        except AnalyticsServiceError as e:
            return Response({'error': str(e)}, status=400)
    """

    pass


class InvalidRangeError(AnalyticsServiceError):
    """
    Raised when the dashboard range is not one of the supported names.

    Valid ranges are: This Month, Last 6 Months.
    """

    pass
