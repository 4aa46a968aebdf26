from typing import Optional

from sqlalchemy.orm import Session

from app.models.storage_slot import StorageSlot


class SqlAlchemyStorage:
    """StoragePort backed by the storage_slot table. Each call commits."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _get_slot(self, key: str) -> Optional[StorageSlot]:
        return self.db.query(StorageSlot).filter(StorageSlot.key == key).first()

    def get_item(self, key: str) -> Optional[str]:
        slot = self._get_slot(key)
        return slot.value if slot else None

    def set_item(self, key: str, value: str) -> None:
        slot = self._get_slot(key)
        if slot is None:
            self.db.add(StorageSlot(key=key, value=value))
        else:
            slot.value = value
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def remove_item(self, key: str) -> None:
        try:
            self.db.query(StorageSlot).filter(StorageSlot.key == key).delete(synchronize_session=False)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
