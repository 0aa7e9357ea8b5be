from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from tripbudget.core import TripService
from tripbudget.utils.validators import json_object

trips_bp = Blueprint("trips", __name__)


@trips_bp.route("/", methods=["POST"])
@jwt_required()
def create_trip():
    """
    Create a planned trip.

    Request body:
    {
        "destination_name": "Lisbon",
        "start_location": "Madrid",  // optional
        "days": 4
    }
    """
    data = json_object(request.get_json(silent=True))
    trip = TripService.create_trip(get_jwt_identity(), data)
    return jsonify({"trip": trip}), 201


@trips_bp.route("/", methods=["GET"])
@jwt_required()
def list_trips():
    return jsonify({"trips": TripService.list_trips(get_jwt_identity())})


@trips_bp.route("/<trip_id>", methods=["GET"])
@jwt_required()
def get_trip(trip_id):
    trip, error, status = TripService.get_owned_trip(trip_id, get_jwt_identity())
    if error:
        return jsonify({"error": error}), status

    return jsonify({"trip": TripService.serialize(trip)})


@trips_bp.route("/<trip_id>", methods=["DELETE"])
@jwt_required()
def delete_trip(trip_id):
    _, error, status = TripService.get_owned_trip(trip_id, get_jwt_identity())
    if error:
        return jsonify({"error": error}), status

    TripService.delete_trip(trip_id)
    return jsonify({"success": True})
