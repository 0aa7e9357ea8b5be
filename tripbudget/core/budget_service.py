"""
Budget Service - Shared trip budget, participants and expenses.

Responsibilities:
- Set up one budget per trip with its participants
- Validate and record expenses against known participants
- Remove expenses
- Build the settlement view from the current snapshot
"""
import logging
from datetime import datetime
from typing import Optional, Dict, Any, List, Tuple

from bson import ObjectId
from pymongo.errors import DuplicateKeyError, PyMongoError

from tripbudget.extensions import db as mongo
from tripbudget.settlements.services import SettlementCalculator
from tripbudget.utils.enums import ExpenseCategory, DEFAULT_PARTICIPANT
from tripbudget.utils.validators import (
    ValidationError, require_keys, positive_amount, currency_code, safe_object_id
)

logger = logging.getLogger(__name__)


def _iso(value):
    return value.isoformat() if hasattr(value, "isoformat") else value


class BudgetService:
    """Service for trip budgets and expense settlement."""

    @classmethod
    def get_budget_for_trip(cls, trip_id: str) -> Optional[Dict]:
        return mongo.budgets.find_one({"trip_id": ObjectId(trip_id)})

    @classmethod
    def get_participants(cls, budget_id: ObjectId) -> List[Dict]:
        return list(mongo.participants.find({"budget_id": budget_id}).sort("_id", 1))

    @classmethod
    def get_expenses(cls, budget_id: ObjectId) -> List[Dict]:
        return list(mongo.expenses.find({"budget_id": budget_id}).sort("date", -1))

    @staticmethod
    def participant_names(names: List[str]) -> List[str]:
        """'Me' first, then caller-supplied names, trimmed and de-duplicated."""
        if names is None:
            names = []
        if not isinstance(names, list):
            raise ValidationError("participants must be a list of names")

        result = []
        for name in [DEFAULT_PARTICIPANT] + names:
            if not isinstance(name, str):
                raise ValidationError("participant names must be strings")
            name = name.strip()
            if name and name not in result:
                result.append(name)
        return result

    @classmethod
    def create_budget(
        cls,
        trip_id: str,
        payload: Dict[str, Any],
        default_currency: str = "USD"
    ) -> Tuple[Optional[Dict], Optional[str]]:
        """
        Set up the budget for a trip.

        Args:
            trip_id: Trip the budget belongs to
            payload: {total_budget, currency?, participants}
            default_currency: Used when payload has no currency

        Returns:
            Tuple of (serialized budget, error message if it already exists)
        """
        require_keys(payload, "total_budget")
        total_budget = positive_amount(payload["total_budget"], "total_budget")
        currency = currency_code(payload.get("currency"), default=default_currency)
        names = cls.participant_names(payload.get("participants"))

        trip_oid = ObjectId(trip_id)
        if mongo.budgets.find_one({"trip_id": trip_oid}):
            return None, "Budget already set up for this trip"

        now = datetime.utcnow()
        budget = {
            "trip_id": trip_oid,
            "total_budget": total_budget,
            "currency": currency,
            "created_at": now,
            "updated_at": now
        }

        try:
            result = mongo.budgets.insert_one(budget)
        except DuplicateKeyError:
            return None, "Budget already set up for this trip"
        budget["_id"] = result.inserted_id

        participants = [
            {"budget_id": budget["_id"], "name": name, "created_at": now}
            for name in names
        ]
        try:
            inserted = mongo.participants.insert_many(participants)
        except PyMongoError:
            # Roll back so the trip can be set up again
            logger.exception("Participant insert failed, removing budget %s", budget["_id"])
            mongo.participants.delete_many({"budget_id": budget["_id"]})
            mongo.budgets.delete_one({"_id": budget["_id"]})
            raise
        for p, oid in zip(participants, inserted.inserted_ids):
            p["_id"] = oid

        logger.info(
            "Budget %s set up for trip %s with %d participants",
            budget["_id"], trip_id, len(participants)
        )

        serialized = cls.serialize_budget(budget)
        serialized["participants"] = [cls.serialize_participant(p) for p in participants]
        return serialized, None

    @classmethod
    def add_participant(cls, budget: Dict, name: Any) -> Tuple[Optional[Dict], Optional[str]]:
        """
        Add a named participant to an existing budget.

        Returns:
            Tuple of (serialized participant, error message if the name is taken)
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("name must be a non-empty string")
        name = name.strip()

        if mongo.participants.find_one({"budget_id": budget["_id"], "name": name}):
            return None, f"Participant '{name}' already exists"

        participant = {
            "budget_id": budget["_id"],
            "name": name,
            "created_at": datetime.utcnow()
        }
        try:
            result = mongo.participants.insert_one(participant)
        except DuplicateKeyError:
            return None, f"Participant '{name}' already exists"
        participant["_id"] = result.inserted_id

        logger.info("Added participant %s to budget %s", name, budget["_id"])
        return cls.serialize_participant(participant), None

    @classmethod
    def validate_expense(cls, payload: Dict[str, Any], participants: List[Dict]) -> Dict[str, Any]:
        """
        Check an expense payload is fully attributable to known participants.

        Returns:
            Clean expense fields with ObjectId references

        Raises:
            ValidationError: on any malformed field
        """
        require_keys(payload, "amount", "paid_by_id", "split_with_ids")

        amount = positive_amount(payload["amount"])

        category = payload.get("category")
        if category is None:
            category = ExpenseCategory.OTHER.value
        if not isinstance(category, str) or not category.strip():
            raise ValidationError("category must be a non-empty string")
        category = category.strip()

        description = payload.get("description") or ""
        if not isinstance(description, str):
            raise ValidationError("description must be a string")

        known = {str(p["_id"]): p["_id"] for p in participants}

        paid_by_id = str(payload["paid_by_id"])
        if paid_by_id not in known:
            raise ValidationError(f"unknown payer: {paid_by_id}")

        split_with_ids = payload["split_with_ids"]
        if not isinstance(split_with_ids, list) or not split_with_ids:
            raise ValidationError("split_with_ids must be a non-empty list")

        split_with = []
        for pid in split_with_ids:
            pid = str(pid)
            if pid not in known:
                raise ValidationError(f"unknown participant in split: {pid}")
            if known[pid] not in split_with:
                split_with.append(known[pid])

        return {
            "amount": amount,
            "category": category,
            "description": description.strip(),
            "paid_by_id": known[paid_by_id],
            "split_with_ids": split_with
        }

    @classmethod
    def record_expense(cls, budget: Dict, payload: Dict[str, Any]) -> Dict:
        """
        Validate and append an expense to the budget.

        Args:
            budget: Budget document
            payload: {amount, category, description, paid_by_id, split_with_ids}

        Returns:
            Serialized expense including the payer
        """
        participants = cls.get_participants(budget["_id"])
        fields = cls.validate_expense(payload, participants)

        now = datetime.utcnow()
        expense = {
            "budget_id": budget["_id"],
            **fields,
            "date": now,
            "created_at": now
        }

        result = mongo.expenses.insert_one(expense)
        expense["_id"] = result.inserted_id

        logger.info(
            "Recorded expense %s of %.2f on budget %s",
            result.inserted_id, fields["amount"], budget["_id"]
        )

        names = {p["_id"]: p["name"] for p in participants}
        serialized = cls.serialize_expense(expense)
        serialized["paid_by"] = {
            "_id": str(fields["paid_by_id"]),
            "name": names.get(fields["paid_by_id"])
        }
        return serialized

    @classmethod
    def remove_expense(cls, budget: Dict, expense_id: str) -> bool:
        """Delete an expense of this budget. Returns False if it does not exist."""
        oid = safe_object_id(expense_id)
        if oid is None:
            return False

        result = mongo.expenses.delete_one({"_id": oid, "budget_id": budget["_id"]})
        if result.deleted_count:
            logger.info("Removed expense %s from budget %s", expense_id, budget["_id"])
        return result.deleted_count > 0

    @classmethod
    def get_settlement(cls, trip_id: str) -> Optional[Dict[str, Any]]:
        """
        Budget details plus computed balances and suggested transfers.

        Returns None when the trip has no budget yet.
        """
        budget = cls.get_budget_for_trip(trip_id)
        if not budget:
            return None

        participants = cls.get_participants(budget["_id"])
        expenses = cls.get_expenses(budget["_id"])

        summary = SettlementCalculator.summarize(participants, expenses, budget["total_budget"])

        names = {p["_id"]: p["name"] for p in participants}
        serialized_expenses = []
        for e in expenses:
            item = cls.serialize_expense(e)
            item["paid_by"] = {"_id": str(e["paid_by_id"]), "name": names.get(e["paid_by_id"])}
            serialized_expenses.append(item)

        view = cls.serialize_budget(budget)
        view.update({
            "participants": [cls.serialize_participant(p) for p in participants],
            "expenses": serialized_expenses,
            **summary
        })
        return view

    @classmethod
    def delete_for_trip(cls, trip_id: str) -> None:
        """Cascade-delete the trip's budget, participants and expenses."""
        budget = cls.get_budget_for_trip(trip_id)
        if not budget:
            return

        mongo.expenses.delete_many({"budget_id": budget["_id"]})
        mongo.participants.delete_many({"budget_id": budget["_id"]})
        mongo.budgets.delete_one({"_id": budget["_id"]})
        logger.info("Deleted budget %s of trip %s", budget["_id"], trip_id)

    # ------------------ SERIALIZERS ------------------

    @staticmethod
    def serialize_budget(budget: Dict) -> Dict:
        return {
            "_id": str(budget["_id"]),
            "trip_id": str(budget["trip_id"]),
            "total_budget": budget["total_budget"],
            "currency": budget.get("currency", "USD"),
            "created_at": _iso(budget.get("created_at")),
            "updated_at": _iso(budget.get("updated_at"))
        }

    @staticmethod
    def serialize_participant(participant: Dict) -> Dict:
        return {
            "_id": str(participant["_id"]),
            "budget_id": str(participant["budget_id"]),
            "name": participant["name"],
            "created_at": _iso(participant.get("created_at"))
        }

    @staticmethod
    def serialize_expense(expense: Dict) -> Dict:
        return {
            "_id": str(expense["_id"]),
            "budget_id": str(expense["budget_id"]),
            "amount": expense["amount"],
            "category": expense.get("category"),
            "description": expense.get("description", ""),
            "paid_by_id": str(expense["paid_by_id"]),
            "split_with_ids": [str(pid) for pid in expense.get("split_with_ids", [])],
            "date": _iso(expense.get("date"))
        }
