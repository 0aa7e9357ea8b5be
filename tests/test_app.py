"""Tests for the application factory."""

from unittest.mock import patch

from pymongo.errors import ServerSelectionTimeoutError

from tripbudget import create_app
from tripbudget.config import TestConfig


class IndexedConfig(TestConfig):
    MONGO_ENSURE_INDEXES = True


def test_indexes_created_on_startup():
    with patch("tripbudget.ensure_indexes") as ensure:
        create_app(IndexedConfig)

    ensure.assert_called_once_with()


def test_indexes_skipped_when_disabled():
    with patch("tripbudget.ensure_indexes") as ensure:
        create_app(TestConfig)

    ensure.assert_not_called()


def test_startup_survives_unreachable_mongo(caplog):
    with patch("tripbudget.ensure_indexes", side_effect=ServerSelectionTimeoutError("down")):
        app = create_app(IndexedConfig)

    assert app is not None
    assert "flask init-db" in caplog.text
