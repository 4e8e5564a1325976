"""CRUD singletons."""

from quotakeeper.crud.crud_account import account

__all__ = ["account"]
