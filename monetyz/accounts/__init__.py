"""Account registry package."""

from monetyz.accounts.registry import DEFAULT_ACCOUNTS, DOWN, UP, AccountRegistry

__all__ = ["AccountRegistry", "DEFAULT_ACCOUNTS", "DOWN", "UP"]
