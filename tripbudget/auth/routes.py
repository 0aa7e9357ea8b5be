from flask import Blueprint, request, jsonify
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity

from tripbudget import bcrypt
from tripbudget.users.model import User
from tripbudget.utils.validators import json_object

auth_bp = Blueprint("auth", __name__)


@auth_bp.route("/register", methods=["POST"])
def register():
    data = json_object(request.get_json(silent=True))

    if not all(isinstance(data.get(k), str) and data[k].strip() for k in ("name", "email", "password")):
        return jsonify({"error": "Missing required fields"}), 400

    if User.find_by_email(data["email"]):
        return jsonify({"error": "User already exists"}), 409

    password_hash = bcrypt.generate_password_hash(data["password"]).decode("utf-8")
    user = User(User.create(data["name"], data["email"], password_hash))
    access_token = create_access_token(identity=user.id)

    return jsonify({
        "access_token": access_token,
        "user": user.to_dict()
    }), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = json_object(request.get_json(silent=True))
    if not all(isinstance(data.get(k), str) and data[k] for k in ("email", "password")):
        return jsonify({"error": "Missing required fields"}), 400

    user_dict = User.find_by_email(data["email"])

    if not user_dict or not bcrypt.check_password_hash(user_dict["password_hash"], data["password"]):
        return jsonify({"error": "Invalid credentials"}), 401

    user = User(user_dict)
    token = create_access_token(identity=user.id)

    return jsonify({
        "access_token": token,
        "user": user.to_dict()
    })


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    user_dict = User.find_by_id(get_jwt_identity())

    if not user_dict:
        return jsonify({"error": "User not found"}), 404

    return jsonify(User(user_dict).to_dict())
