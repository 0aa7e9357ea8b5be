"""Core business logic services for trip budgets."""

from .trip_service import TripService
from .budget_service import BudgetService

__all__ = [
    "TripService",
    "BudgetService",
]
