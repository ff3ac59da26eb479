"""
Storage layer for fitcheck.

MongoStore is constructed once per process from an explicit database handle
and passed to every service that needs durable state.
"""

from fitcheck.database.store import MongoStore, translate_storage_errors

__all__ = ["MongoStore", "translate_storage_errors"]
