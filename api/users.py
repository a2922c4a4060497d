from __future__ import annotations

from flask import Blueprint, request, jsonify, g

from models.schemas.user import RoleUpdateSchema
from services import get_session_manager
from utils.decorators import roles_required
from utils.exceptions import ValidationError

bp = Blueprint("users", __name__)

role_update_schema = RoleUpdateSchema()


@bp.put("/users/<user_id>/role")
@roles_required(["admin"])
def set_role(user_id: str):
    """
    Admin-only: set the role of a user.
    Body: { "role": "admin" | "user" }
    """
    data = role_update_schema.load(request.get_json(silent=True) or {})
    if user_id == g.current_user.id:
        raise ValidationError("Admins cannot change their own role")
    user = get_session_manager().set_role(user_id, data["role"])
    return jsonify({"data": {"user": user}}), 200
