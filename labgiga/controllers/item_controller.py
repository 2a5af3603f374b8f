from flask import Blueprint, jsonify
from flask_jwt_extended import jwt_required

from labgiga.errors import DomainError
from labgiga.models.status import Role
from labgiga.services.item_service import ItemService
from labgiga.utils.decorators import role_required
from labgiga.utils.responses import domain_error
from labgiga.utils.serializers import item_to_dict
from labgiga.utils.validation import json_body

item_bp = Blueprint("items", __name__)


@item_bp.get("")
def list_items():
    items = ItemService.list_items()
    return jsonify({
        "data": [item_to_dict(i) for i in items],
        "meta": {"total": len(items)},
    })


@item_bp.get("/categories")
def list_categories():
    return jsonify(ItemService.list_categories())


@item_bp.get("/<int:item_id>")
def get_item(item_id: int):
    try:
        return jsonify(item_to_dict(ItemService.get_item(item_id)))
    except DomainError as e:
        return domain_error(e)


@item_bp.post("")
@jwt_required()
@role_required(Role.ADMIN.value)
def create_item():
    data = json_body()
    try:
        item = ItemService.create_item(data)
        return jsonify(item_to_dict(item)), 201
    except DomainError as e:
        return domain_error(e)


@item_bp.patch("/<int:item_id>")
@jwt_required()
@role_required(Role.ADMIN.value)
def update_item(item_id: int):
    data = json_body()
    try:
        item = ItemService.update_item(item_id, data)
        return jsonify(item_to_dict(item))
    except DomainError as e:
        return domain_error(e)


@item_bp.delete("/<int:item_id>")
@jwt_required()
@role_required(Role.ADMIN.value)
def delete_item(item_id: int):
    try:
        ItemService.delete_item(item_id)
        return jsonify({"success": True})
    except DomainError as e:
        return domain_error(e)
