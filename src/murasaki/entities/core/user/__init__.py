"""User entity module.

- User: Domain entity
- UserTable: Database persistence model
- UserRepository: Data access layer, including the subject-keyed upsert
"""

from .entity import User
from .repository import UserRepository
from .table import UserTable

__all__ = ["User", "UserTable", "UserRepository"]
