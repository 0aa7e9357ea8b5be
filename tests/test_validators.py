import pytest
from bson import ObjectId

from tripbudget.utils.validators import (
    ValidationError, currency_code, json_object, positive_amount, require_keys, safe_object_id
)


def test_require_keys():
    assert require_keys({"a": 1, "b": 2}, "a", "b")
    with pytest.raises(ValidationError, match="missing keys"):
        require_keys({"a": 1}, "a", "b")
    with pytest.raises(ValidationError):
        require_keys(None, "a")


@pytest.mark.parametrize("value, expected", [(5, 5.0), ("12.50", 12.5), (0.01, 0.01)])
def test_positive_amount(value, expected):
    assert positive_amount(value) == expected


@pytest.mark.parametrize("value", [0, -1, "x", None, False, float("nan"), float("inf")])
def test_positive_amount_rejects(value):
    with pytest.raises(ValidationError):
        positive_amount(value)


def test_currency_code():
    assert currency_code(None) == "USD"
    assert currency_code("", default="EUR") == "EUR"
    assert currency_code(" jpy ") == "JPY"
    with pytest.raises(ValidationError):
        currency_code("dollars")


def test_safe_object_id():
    oid = ObjectId()
    assert safe_object_id(str(oid)) == oid
    assert safe_object_id("nope") is None
    assert safe_object_id(None) is None


def test_json_object():
    assert json_object(None) == {}
    assert json_object({"a": 1}) == {"a": 1}
    with pytest.raises(ValidationError):
        json_object(["a"])
    with pytest.raises(ValidationError):
        json_object("text")
