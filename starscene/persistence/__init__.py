from .records import ClickedStar, PersistedState
from .gateway import JsonFileStore, KeyValueStore, MemoryStore, PersistenceGateway, StorageKeys

__all__ = [
    "ClickedStar",
    "PersistedState",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "PersistenceGateway",
    "StorageKeys",
]
