# blog/db/__init__.py
"""
Re-exports for convenient imports:

    from blog.db import Base, Database, get_db
"""
from .base import Base            # noqa: F401
from .session import Database, get_db   # noqa: F401
