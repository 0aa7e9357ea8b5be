"""Tests for the Mongo-backed budget service."""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import BulkWriteError, DuplicateKeyError

from tripbudget.core import BudgetService
from tripbudget.utils.validators import ValidationError


@pytest.fixture
def budget():
    return {
        "_id": ObjectId(),
        "trip_id": ObjectId(),
        "total_budget": 300.0,
        "currency": "EUR",
        "created_at": datetime(2026, 5, 1),
        "updated_at": datetime(2026, 5, 1),
    }


@pytest.fixture
def people(budget):
    return [
        {"_id": ObjectId(), "budget_id": budget["_id"], "name": "Me"},
        {"_id": ObjectId(), "budget_id": budget["_id"], "name": "Ana"},
        {"_id": ObjectId(), "budget_id": budget["_id"], "name": "Bruno"},
    ]


def test_participant_names_always_start_with_me():
    assert BudgetService.participant_names(["Ana", " Me ", "Ana", "", "Bruno "]) == [
        "Me", "Ana", "Bruno"
    ]
    assert BudgetService.participant_names(None) == ["Me"]


def test_participant_names_rejects_non_list():
    with pytest.raises(ValidationError):
        BudgetService.participant_names("Ana, Bruno")


def test_create_budget_inserts_budget_and_participants(mock_mongo):
    trip_id = str(ObjectId())
    budget_id = ObjectId()
    mock_mongo.budgets.find_one.return_value = None
    mock_mongo.budgets.insert_one.return_value = MagicMock(inserted_id=budget_id)
    mock_mongo.participants.insert_many.return_value = MagicMock(
        inserted_ids=[ObjectId(), ObjectId()]
    )

    budget, error = BudgetService.create_budget(
        trip_id, {"total_budget": "250.5", "currency": "eur", "participants": ["Ana"]}
    )

    assert error is None
    assert budget["_id"] == str(budget_id)
    assert budget["total_budget"] == 250.5
    assert budget["currency"] == "EUR"
    assert [p["name"] for p in budget["participants"]] == ["Me", "Ana"]

    docs = mock_mongo.participants.insert_many.call_args[0][0]
    assert all(d["budget_id"] == budget_id for d in docs)


def test_create_budget_uses_default_currency(mock_mongo):
    mock_mongo.budgets.find_one.return_value = None
    mock_mongo.budgets.insert_one.return_value = MagicMock(inserted_id=ObjectId())
    mock_mongo.participants.insert_many.return_value = MagicMock(inserted_ids=[ObjectId()])

    budget, _ = BudgetService.create_budget(
        str(ObjectId()), {"total_budget": 10}, default_currency="GBP"
    )

    assert budget["currency"] == "GBP"


def test_create_budget_twice_is_a_conflict(mock_mongo, budget):
    mock_mongo.budgets.find_one.return_value = budget

    result, error = BudgetService.create_budget(str(budget["trip_id"]), {"total_budget": 100})

    assert result is None
    assert error == "Budget already set up for this trip"
    mock_mongo.budgets.insert_one.assert_not_called()


def test_create_budget_race_on_unique_index(mock_mongo):
    mock_mongo.budgets.find_one.return_value = None
    mock_mongo.budgets.insert_one.side_effect = DuplicateKeyError("dup")

    result, error = BudgetService.create_budget(str(ObjectId()), {"total_budget": 100})

    assert result is None
    assert error
    mock_mongo.participants.insert_many.assert_not_called()


def test_create_budget_rolls_back_when_participants_fail(mock_mongo):
    budget_id = ObjectId()
    mock_mongo.budgets.find_one.return_value = None
    mock_mongo.budgets.insert_one.return_value = MagicMock(inserted_id=budget_id)
    mock_mongo.participants.insert_many.side_effect = BulkWriteError({})

    with pytest.raises(BulkWriteError):
        BudgetService.create_budget(str(ObjectId()), {"total_budget": 100, "participants": ["Ana"]})

    mock_mongo.budgets.delete_one.assert_called_once_with({"_id": budget_id})
    mock_mongo.participants.delete_many.assert_called_once_with({"budget_id": budget_id})


def test_validate_expense_accepts_free_text_category(people):
    fields = BudgetService.validate_expense({
        "amount": 250,
        "category": "  flights ",
        "description": "Return tickets",
        "paid_by_id": str(people[0]["_id"]),
        "split_with_ids": [str(p["_id"]) for p in people],
    }, people)

    assert fields["category"] == "flights"


def test_validate_expense_defaults_category(people):
    fields = BudgetService.validate_expense({
        "amount": 5,
        "paid_by_id": str(people[0]["_id"]),
        "split_with_ids": [str(people[0]["_id"])],
    }, people)

    assert fields["category"] == "other"


@pytest.mark.parametrize("total", [0, -5, "abc", None, True])
def test_create_budget_rejects_bad_totals(mock_mongo, total):
    with pytest.raises(ValidationError):
        BudgetService.create_budget(str(ObjectId()), {"total_budget": total})


def test_add_participant_duplicate_name(mock_mongo, budget, people):
    mock_mongo.participants.find_one.return_value = people[1]

    participant, error = BudgetService.add_participant(budget, "Ana")

    assert participant is None
    assert "already exists" in error


def test_add_participant(mock_mongo, budget):
    new_id = ObjectId()
    mock_mongo.participants.find_one.return_value = None
    mock_mongo.participants.insert_one.return_value = MagicMock(inserted_id=new_id)

    participant, error = BudgetService.add_participant(budget, "  Carla ")

    assert error is None
    assert participant["_id"] == str(new_id)
    assert participant["name"] == "Carla"


def test_validate_expense_collapses_duplicate_split_ids(people):
    me, ana, _ = people

    fields = BudgetService.validate_expense({
        "amount": 42,
        "category": "Food",
        "description": " Tapas ",
        "paid_by_id": str(me["_id"]),
        "split_with_ids": [str(me["_id"]), str(ana["_id"]), str(ana["_id"])],
    }, people)

    assert fields == {
        "amount": 42.0,
        "category": "Food",
        "description": "Tapas",
        "paid_by_id": me["_id"],
        "split_with_ids": [me["_id"], ana["_id"]],
    }


@pytest.mark.parametrize("override", [
    {"amount": 0},
    {"amount": "ten"},
    {"split_with_ids": []},
    {"split_with_ids": "everyone"},
    {"split_with_ids": [str(ObjectId())]},
    {"paid_by_id": str(ObjectId())},
    {"category": 5},
    {"category": "   "},
    {"description": 12},
])
def test_validate_expense_rejects_malformed_payloads(people, override):
    payload = {
        "amount": 10,
        "category": "food",
        "description": "",
        "paid_by_id": str(people[0]["_id"]),
        "split_with_ids": [str(p["_id"]) for p in people],
    }
    payload.update(override)

    with pytest.raises(ValidationError):
        BudgetService.validate_expense(payload, people)


def test_validate_expense_requires_payer(people):
    with pytest.raises(ValidationError, match="missing keys"):
        BudgetService.validate_expense({"amount": 5, "split_with_ids": []}, people)


def test_record_expense(mock_mongo, budget, people):
    expense_id = ObjectId()
    mock_mongo.participants.find.return_value.sort.return_value = people
    mock_mongo.expenses.insert_one.return_value = MagicMock(inserted_id=expense_id)

    expense = BudgetService.record_expense(budget, {
        "amount": 90,
        "category": "accommodation",
        "description": "Hostel",
        "paid_by_id": str(people[1]["_id"]),
        "split_with_ids": [str(p["_id"]) for p in people],
    })

    assert expense["_id"] == str(expense_id)
    assert expense["paid_by"] == {"_id": str(people[1]["_id"]), "name": "Ana"}
    doc = mock_mongo.expenses.insert_one.call_args[0][0]
    assert doc["budget_id"] == budget["_id"]
    assert doc["split_with_ids"] == [p["_id"] for p in people]


def test_remove_expense(mock_mongo, budget):
    mock_mongo.expenses.delete_one.return_value = MagicMock(deleted_count=1)
    expense_id = ObjectId()

    assert BudgetService.remove_expense(budget, str(expense_id)) is True
    mock_mongo.expenses.delete_one.assert_called_once_with(
        {"_id": expense_id, "budget_id": budget["_id"]}
    )


def test_remove_missing_expense(mock_mongo, budget):
    mock_mongo.expenses.delete_one.return_value = MagicMock(deleted_count=0)

    assert BudgetService.remove_expense(budget, str(ObjectId())) is False
    assert BudgetService.remove_expense(budget, "not-an-id") is False


def test_get_settlement_not_set_up(mock_mongo):
    mock_mongo.budgets.find_one.return_value = None

    assert BudgetService.get_settlement(str(ObjectId())) is None


def test_get_settlement_view(mock_mongo, budget, people):
    me, ana, bruno = people
    everyone = [me["_id"], ana["_id"], bruno["_id"]]
    expenses = [
        {"_id": ObjectId(), "budget_id": budget["_id"], "amount": 90.0, "category": "food",
         "description": "Dinner", "paid_by_id": me["_id"], "split_with_ids": everyone,
         "date": datetime(2026, 5, 2)},
        {"_id": ObjectId(), "budget_id": budget["_id"], "amount": 300.0, "category": "transport",
         "description": "Car", "paid_by_id": ana["_id"], "split_with_ids": everyone,
         "date": datetime(2026, 5, 1)},
    ]
    mock_mongo.budgets.find_one.return_value = budget
    mock_mongo.participants.find.return_value.sort.return_value = people
    mock_mongo.expenses.find.return_value.sort.return_value = expenses

    view = BudgetService.get_settlement(str(budget["trip_id"]))

    assert view["currency"] == "EUR"
    assert view["total_spent"] == 390.0
    assert view["remaining"] == -90.0
    assert [p["name"] for p in view["participants"]] == ["Me", "Ana", "Bruno"]
    assert view["expenses"][0]["paid_by"]["name"] == "Me"
    # Me +90-130=-40, Ana +300-130=170, Bruno -130
    assert view["debts"] == [
        {"from": "Bruno", "to": "Ana", "amount": 130.0},
        {"from": "Me", "to": "Ana", "amount": 40.0},
    ]
    assert view["unsettled"] == []


def test_delete_for_trip_cascades(mock_mongo, budget):
    mock_mongo.budgets.find_one.return_value = budget

    BudgetService.delete_for_trip(str(budget["trip_id"]))

    mock_mongo.expenses.delete_many.assert_called_once_with({"budget_id": budget["_id"]})
    mock_mongo.participants.delete_many.assert_called_once_with({"budget_id": budget["_id"]})
    mock_mongo.budgets.delete_one.assert_called_once_with({"_id": budget["_id"]})
