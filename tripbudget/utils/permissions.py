"""Permission helpers."""


def is_owner(user_id, trip):
    return str(trip.get("user_id")) == str(user_id)
