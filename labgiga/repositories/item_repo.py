from sqlalchemy import case, update

from labgiga.extensions import db
from labgiga.models.borrowing import BorrowingItem
from labgiga.models.item import Item


class ItemRepo:
    @staticmethod
    def list_all():
        return Item.query.order_by(Item.id.desc()).all()

    @staticmethod
    def get(item_id: int):
        return db.session.get(Item, item_id)

    @staticmethod
    def list_categories():
        rows = (
            db.session.query(Item.category)
            .filter(Item.category.isnot(None), Item.category != "")
            .distinct()
            .order_by(Item.category)
            .all()
        )
        return [r[0] for r in rows]

    @staticmethod
    def create(item: Item):
        db.session.add(item)
        db.session.commit()
        return item

    @staticmethod
    def update():
        db.session.commit()

    @staticmethod
    def delete(item: Item):
        db.session.delete(item)
        db.session.commit()

    @staticmethod
    def has_borrowings(item_id: int) -> bool:
        return db.session.query(BorrowingItem.id).filter(BorrowingItem.item_id == item_id).first() is not None

    @staticmethod
    def take_stock(item_id: int, quantity: int) -> bool:
        """
        Decrements stock only if enough is left. Does not commit.
        Returns False when the row did not have ``quantity`` available.
        """
        stmt = (
            update(Item)
            .where(Item.id == item_id, Item.stock >= quantity)
            .values(stock=Item.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return db.session.execute(stmt).rowcount == 1

    @staticmethod
    def release_stock(item_id: int, quantity: int) -> bool:
        """Increments stock, clamped to total_stock. Does not commit."""
        stmt = (
            update(Item)
            .where(Item.id == item_id)
            .values(
                stock=case(
                    (Item.stock + quantity > Item.total_stock, Item.total_stock),
                    else_=Item.stock + quantity,
                )
            )
            .execution_options(synchronize_session=False)
        )
        return db.session.execute(stmt).rowcount == 1
