"""Models for the quotakeeper package."""

from quotakeeper.models._base import Base
from quotakeeper.models.account import Account

__all__ = ["Base", "Account"]
