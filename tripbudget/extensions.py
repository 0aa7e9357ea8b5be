import logging

from pymongo import ASCENDING, MongoClient

logger = logging.getLogger(__name__)

_client = None
_db = None


def init_mongo(app):
    global _client, _db
    mongo_uri = app.config["MONGO_URI"]
    # Connection is lazy; nothing touches the server until the first query
    _client = MongoClient(mongo_uri, connect=False, serverSelectionTimeoutMS=5000)

    # Database name comes from the URI path, falling back to MONGO_DB_NAME
    _db = _client.get_default_database(default=app.config["MONGO_DB_NAME"])

    logger.info("MongoDB configured for database: %s", _db.name)


def ensure_indexes():
    """Create the unique indexes the budget module relies on."""
    db.budgets.create_index([("trip_id", ASCENDING)], unique=True)
    db.participants.create_index([("budget_id", ASCENDING), ("name", ASCENDING)], unique=True)
    db.expenses.create_index([("budget_id", ASCENDING), ("date", ASCENDING)])
    db.planned_trips.create_index([("user_id", ASCENDING)])
    db.users.create_index([("email", ASCENDING)], unique=True)


def get_db():
    """Get the database instance. Must be called after init_mongo."""
    return _db


def get_client():
    """Get the MongoDB client instance. Must be called after init_mongo."""
    return _client


# Proxy that always resolves to the current db
class _DBProxy:
    def __getattr__(self, name):
        if _db is None:
            raise RuntimeError("Database not initialized. Call init_mongo first.")
        return getattr(_db, name)

    def __getitem__(self, name):
        if _db is None:
            raise RuntimeError("Database not initialized. Call init_mongo first.")
        return _db[name]

    def __bool__(self):
        return _db is not None


db = _DBProxy()
