from labgiga.errors import InvalidState, NotFound, ValidationError
from labgiga.extensions import db
from labgiga.models.item import Item
from labgiga.repositories.item_repo import ItemRepo
from labgiga.utils.validation import clean_text, parse_int


def _to_bool(value):
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


class ItemService:
    @staticmethod
    def list_items():
        return ItemRepo.list_all()

    @staticmethod
    def list_categories():
        return ItemRepo.list_categories()

    @staticmethod
    def get_item(item_id: int):
        item = ItemRepo.get(item_id)
        if not item:
            raise NotFound("Item not found")
        return item

    @staticmethod
    def _check_stock(item: Item):
        if item.total_stock < 0:
            raise ValidationError("totalStock cannot be negative")
        if item.stock < 0 or item.stock > item.total_stock:
            raise ValidationError("stock must be between 0 and totalStock")

    @staticmethod
    def create_item(data: dict):
        name = clean_text(data.get("name"), "name")
        if not name:
            raise ValidationError("name is required")

        total = parse_int(data.get("totalStock", data.get("stock", 0)), "totalStock")
        item = Item(
            name=name,
            description=clean_text(data.get("description"), "description"),
            category=clean_text(data.get("category"), "category") or None,
            image_url=clean_text(data.get("imageUrl"), "imageUrl") or None,
            total_stock=total,
            stock=parse_int(data.get("stock", total), "stock"),
            is_available=_to_bool(data.get("isAvailable", True)),
        )
        ItemService._check_stock(item)
        return ItemRepo.create(item)

    @staticmethod
    def update_item(item_id: int, data: dict):
        item = ItemService.get_item(item_id)

        try:
            if "name" in data:
                name = clean_text(data.get("name"), "name")
                if not name:
                    raise ValidationError("name cannot be empty")
                item.name = name
            if "description" in data:
                item.description = clean_text(data.get("description"), "description")
            if "category" in data:
                item.category = clean_text(data.get("category"), "category") or None
            if "imageUrl" in data:
                item.image_url = clean_text(data.get("imageUrl"), "imageUrl") or None
            if "totalStock" in data:
                item.total_stock = parse_int(data["totalStock"], "totalStock")
            if "stock" in data:
                item.stock = parse_int(data["stock"], "stock")
            if "isAvailable" in data:
                item.is_available = _to_bool(data["isAvailable"])

            ItemService._check_stock(item)
        except ValidationError:
            db.session.rollback()
            raise
        ItemRepo.update()
        return item

    @staticmethod
    def delete_item(item_id: int):
        item = ItemService.get_item(item_id)
        if ItemRepo.has_borrowings(item.id):
            raise InvalidState("Item has borrowing history, mark it unavailable instead of deleting it")
        ItemRepo.delete(item)
