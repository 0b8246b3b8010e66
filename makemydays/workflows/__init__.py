"""Workflow entry points for catalog, booking, rating and user operations."""

from .booking import BookingPipeline, BookingReceipt, BookingValidationError, bookable_dates
from .catalog import CatalogStore, filter_catalog, merge_catalog
from .notifications import ReminderService
from .rating import RatingAggregator, RatingSummary
from .users import UserDirectory, resolve_role

__all__ = [
    "BookingPipeline",
    "BookingReceipt",
    "BookingValidationError",
    "CatalogStore",
    "RatingAggregator",
    "RatingSummary",
    "ReminderService",
    "UserDirectory",
    "bookable_dates",
    "filter_catalog",
    "merge_catalog",
    "resolve_role",
]
