"""
Trip Service - Planned trip ownership.

Responsibilities:
- Create and list a user's planned trips
- Resolve a trip for the caller, enforcing ownership
- Cascade budget data when a trip is deleted
"""
import logging
from datetime import datetime
from typing import Optional, Dict, Any, List, Tuple

from tripbudget.extensions import db as mongo
from tripbudget.utils.permissions import is_owner
from tripbudget.utils.validators import ValidationError, require_keys, safe_object_id

logger = logging.getLogger(__name__)


class TripService:
    """Service for planned trips."""

    @classmethod
    def create_trip(cls, user_id: str, payload: Dict[str, Any]) -> Dict:
        """
        Create a planned trip owned by the caller.

        Args:
            user_id: Owner
            payload: {destination_name, start_location, days}

        Returns:
            Serialized trip
        """
        require_keys(payload, "destination_name", "days")

        destination = str(payload["destination_name"]).strip()
        if not destination:
            raise ValidationError("destination_name must not be empty")

        days = payload["days"]
        if isinstance(days, bool):
            raise ValidationError("days must be an integer")
        if isinstance(days, str):
            days = days.strip()
            if not days.isdigit():
                raise ValidationError("days must be an integer")
            days = int(days)
        elif isinstance(days, float) and days.is_integer():
            days = int(days)
        elif not isinstance(days, int):
            raise ValidationError("days must be an integer")
        if days <= 0:
            raise ValidationError("days must be greater than 0")

        now = datetime.utcnow()
        trip = {
            "user_id": safe_object_id(user_id),
            "destination_name": destination,
            "start_location": str(payload.get("start_location") or "").strip(),
            "days": days,
            "created_at": now,
            "updated_at": now
        }

        result = mongo.planned_trips.insert_one(trip)
        trip["_id"] = result.inserted_id
        logger.info("User %s created trip %s", user_id, result.inserted_id)

        return cls.serialize(trip)

    @classmethod
    def list_trips(cls, user_id: str) -> List[Dict]:
        trips = mongo.planned_trips.find(
            {"user_id": safe_object_id(user_id)}
        ).sort("created_at", -1)
        return [cls.serialize(t) for t in trips]

    @classmethod
    def get_trip(cls, trip_id: str) -> Optional[Dict]:
        oid = safe_object_id(trip_id)
        if oid is None:
            return None
        return mongo.planned_trips.find_one({"_id": oid})

    @classmethod
    def get_owned_trip(
        cls,
        trip_id: str,
        user_id: str
    ) -> Tuple[Optional[Dict], Optional[str], int]:
        """
        Load a trip and check the caller owns it.

        Returns:
            Tuple of (trip, error_message, http_status)
        """
        trip = cls.get_trip(trip_id)
        if not trip:
            return None, "Trip not found", 404

        if not is_owner(user_id, trip):
            return None, "Not authorized to access this trip", 403

        return trip, None, 200

    @classmethod
    def delete_trip(cls, trip_id: str) -> bool:
        """Delete a trip and everything hanging off its budget."""
        from .budget_service import BudgetService

        oid = safe_object_id(trip_id)
        if oid is None:
            return False

        BudgetService.delete_for_trip(trip_id)
        result = mongo.planned_trips.delete_one({"_id": oid})
        logger.info("Deleted trip %s", trip_id)
        return result.deleted_count > 0

    @staticmethod
    def serialize(trip: Dict) -> Dict:
        return {
            "_id": str(trip["_id"]),
            "user_id": str(trip["user_id"]),
            "destination_name": trip.get("destination_name"),
            "start_location": trip.get("start_location", ""),
            "days": trip.get("days"),
            "created_at": trip["created_at"].isoformat() if hasattr(trip.get("created_at"), "isoformat") else trip.get("created_at"),
            "updated_at": trip["updated_at"].isoformat() if hasattr(trip.get("updated_at"), "isoformat") else trip.get("updated_at")
        }
