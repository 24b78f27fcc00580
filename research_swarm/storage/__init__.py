from .memory import RunStore, JsonFileRunStore

__all__ = [
    "RunStore",
    "JsonFileRunStore",
]
