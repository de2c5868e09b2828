from viewing_scheduler.stores.base import StoreError, UniqueConstraintViolation, VisitStore
from viewing_scheduler.stores.memory import InMemoryVisitStore

__all__ = [
    "InMemoryVisitStore",
    "StoreError",
    "UniqueConstraintViolation",
    "VisitStore",
]
