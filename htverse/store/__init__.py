# htverse/store/__init__.py
from .connection import connect
from .records import RecordStore, parse_id

__all__ = ["RecordStore", "connect", "parse_id"]
