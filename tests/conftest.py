"""
Pytest configuration for the trip budget backend.
"""

from unittest.mock import MagicMock, patch

import pytest
from bson import ObjectId
from flask_jwt_extended import create_access_token

from tripbudget import create_app
from tripbudget.config import TestConfig


@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def user_id():
    return str(ObjectId())


@pytest.fixture
def auth_headers(app, user_id):
    with app.app_context():
        token = create_access_token(identity=user_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def mock_mongo():
    """One MagicMock database shared by every module that talks to Mongo."""
    mock_db = MagicMock()
    with patch("tripbudget.core.budget_service.mongo", mock_db), \
            patch("tripbudget.core.trip_service.mongo", mock_db), \
            patch("tripbudget.users.model.db", mock_db):
        yield mock_db


@pytest.fixture
def participants():
    return [
        {"_id": "a", "name": "A"},
        {"_id": "b", "name": "B"},
        {"_id": "c", "name": "C"},
    ]
