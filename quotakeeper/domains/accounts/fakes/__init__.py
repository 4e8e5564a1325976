"""Fake implementations for account domain testing."""

from quotakeeper.domains.accounts.fakes.repository import FakeAccountRepository

__all__ = ["FakeAccountRepository"]
