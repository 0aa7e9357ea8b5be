"""Budget routes: setup, expenses and Splitwise-style settlement."""
from flask import Blueprint, current_app, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from tripbudget.core import TripService, BudgetService
from tripbudget.utils.validators import json_object

budget_bp = Blueprint("budget", __name__)


def _owned_budget(trip_id):
    """Returns (budget, error_response) for the caller's trip."""
    _, error, status = TripService.get_owned_trip(trip_id, get_jwt_identity())
    if error:
        return None, (jsonify({"error": error}), status)

    budget = BudgetService.get_budget_for_trip(trip_id)
    if not budget:
        return None, (jsonify({"error": "Budget not found"}), 404)

    return budget, None


@budget_bp.route("/<trip_id>", methods=["GET"])
@jwt_required()
def get_budget(trip_id):
    """
    Budget details with balances and who owes whom.

    Returns:
    {
        "total_budget": 1000.0, "currency": "USD",
        "participants": [...], "expenses": [...],
        "total_spent": 90.0, "remaining": 910.0,
        "balances": [{"participant_id": "...", "name": "Me", "balance": 60.0}, ...],
        "debts": [{"from": "Ana", "to": "Me", "amount": 30.0}],
        "unsettled": []
    }

    Returns {"not_setup": true} when the trip has no budget yet.
    """
    _, error, status = TripService.get_owned_trip(trip_id, get_jwt_identity())
    if error:
        return jsonify({"error": error}), status

    settlement = BudgetService.get_settlement(trip_id)
    if settlement is None:
        return jsonify({"not_setup": True})

    return jsonify(settlement)


@budget_bp.route("/<trip_id>/setup", methods=["POST"])
@jwt_required()
def setup_budget(trip_id):
    """
    Set up the budget for a trip.

    Request body:
    {
        "total_budget": 1000,
        "currency": "EUR",  // optional
        "participants": ["Ana", "Bruno"]  // "Me" is always added
    }
    """
    _, error, status = TripService.get_owned_trip(trip_id, get_jwt_identity())
    if error:
        return jsonify({"error": error}), status

    data = json_object(request.get_json(silent=True))
    budget, error = BudgetService.create_budget(
        trip_id, data, default_currency=current_app.config["DEFAULT_CURRENCY"]
    )
    if error:
        return jsonify({"error": error}), 409

    return jsonify({"budget": budget}), 201


@budget_bp.route("/<trip_id>/participants", methods=["POST"])
@jwt_required()
def add_participant(trip_id):
    budget, error_response = _owned_budget(trip_id)
    if error_response:
        return error_response

    data = json_object(request.get_json(silent=True))
    participant, error = BudgetService.add_participant(budget, data.get("name"))
    if error:
        return jsonify({"error": error}), 409

    return jsonify({"participant": participant}), 201


@budget_bp.route("/<trip_id>/expense", methods=["POST"])
@jwt_required()
def add_expense(trip_id):
    """
    Record an expense.

    Request body:
    {
        "amount": 90.0,
        "category": "food",
        "description": "Dinner",
        "paid_by_id": "<participant id>",
        "split_with_ids": ["<participant id>", ...]
    }
    """
    budget, error_response = _owned_budget(trip_id)
    if error_response:
        return error_response

    data = json_object(request.get_json(silent=True))
    expense = BudgetService.record_expense(budget, data)
    return jsonify({"expense": expense}), 201


@budget_bp.route("/<trip_id>/expense/<expense_id>", methods=["DELETE"])
@jwt_required()
def delete_expense(trip_id, expense_id):
    budget, error_response = _owned_budget(trip_id)
    if error_response:
        return error_response

    if not BudgetService.remove_expense(budget, expense_id):
        return jsonify({"error": "Expense not found"}), 404

    return jsonify({"success": True})
