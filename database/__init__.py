from database.connection import Database, db

__all__ = ["Database", "db"]
