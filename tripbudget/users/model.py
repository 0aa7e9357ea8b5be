import logging
from datetime import datetime

from tripbudget.extensions import db
from tripbudget.utils.validators import safe_object_id

logger = logging.getLogger(__name__)


class User:
    def __init__(self, user_dict):
        self.id = str(user_dict["_id"])
        self.name = user_dict.get("name")
        self.email = user_dict.get("email")

    def to_dict(self):
        return {"_id": self.id, "name": self.name, "email": self.email}

    @staticmethod
    def find_by_id(user_id):
        oid = safe_object_id(user_id)
        if oid is None:
            return None
        return db.users.find_one({"_id": oid})

    @staticmethod
    def find_by_email(email):
        if not isinstance(email, str):
            return None
        return db.users.find_one({"email": email.strip().lower()})

    @staticmethod
    def create(name, email, password_hash):
        user = {
            "name": name,
            "email": email.strip().lower(),
            "password_hash": password_hash,
            "created_at": datetime.utcnow()
        }
        res = db.users.insert_one(user)
        user["_id"] = res.inserted_id
        logger.info("Registered user %s", res.inserted_id)
        return user
