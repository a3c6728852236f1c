"""
Account Registry

Ordered, user-customisable list of account names with exactly one primary.

INVARIANTS (whenever the registry is non-empty):
- Exactly one account has is_primary=True
- Names are unique case-insensitively
- Iteration order is sort_order ascending (missing last), then created_at;
  values may have gaps
"""

from typing import Optional, Sequence, Union

from monetyz.log import get_logger
from monetyz.models.account import Account
from monetyz.validation.errors import (
    AccountNotFound,
    CannotRemovePrimary,
    DuplicateAccount,
    ValidationError,
)


logger = get_logger(__name__)

DEFAULT_ACCOUNTS = ("Main", "Uni", "Gear")

UP = -1
DOWN = 1


class AccountRegistry:
    """In-memory registry; stores persist its `accounts` after each change."""
    
    def __init__(
        self,
        accounts: Optional[Sequence[Account]] = None,
        seed_names: Sequence[str] = DEFAULT_ACCOUNTS,
    ):
        self._accounts: list[Account] = [a.model_copy() for a in accounts or []]
        self._seed_names = list(seed_names)
        self._sort()
        self._normalise_primary()
    
    def _sort(self) -> None:
        # Stable: equal keys keep their load order
        self._accounts.sort(
            key=lambda a: (
                a.sort_order is None,
                a.sort_order if a.sort_order is not None else 0,
                a.created_at,
            )
        )
    
    def _normalise_primary(self) -> None:
        """Fall back to the first account when none (or several) are primary."""
        if not self._accounts:
            return
        primary = next((a for a in self._accounts if a.is_primary), self._accounts[0])
        for account in self._accounts:
            account.is_primary = account is primary
    
    def _find(self, name: str) -> Optional[Account]:
        key = (name or "").strip().lower()
        return next((a for a in self._accounts if a.name.lower() == key), None)
    
    def _require(self, name: str) -> Account:
        account = self._find(name)
        if account is None:
            raise AccountNotFound(f"Account not found: {name}")
        return account
    
    @property
    def accounts(self) -> list[Account]:
        return [a.model_copy() for a in self._accounts]
    
    @property
    def names(self) -> list[str]:
        return [a.name for a in self._accounts]
    
    @property
    def primary(self) -> Optional[str]:
        return next((a.name for a in self._accounts if a.is_primary), None)
    
    def __len__(self) -> int:
        return len(self._accounts)
    
    def __contains__(self, name: str) -> bool:
        return self._find(name) is not None
    
    def ensure_seed(self) -> bool:
        """Populate the default accounts (first is primary) if empty. Returns True if seeded."""
        if self._accounts:
            return False
        self._accounts = [
            Account(name=name, sort_order=idx, is_primary=idx == 0)
            for idx, name in enumerate(self._seed_names)
        ]
        logger.info("accounts_seeded", names=self.names)
        return True
    
    def add(self, name: str) -> Account:
        """
        Append a new non-primary account.
        
        Raises:
            ValidationError: If the name is blank
            DuplicateAccount: If the name exists (case-insensitive)
        """
        clean = (name or "").strip()
        if not clean:
            raise ValidationError("Account name is required")
        if self._find(clean) is not None:
            raise DuplicateAccount(f"Account already exists: {clean}")
        
        orders = [a.sort_order for a in self._accounts if a.sort_order is not None]
        account = Account(
            name=clean,
            sort_order=max(orders) + 1 if orders else len(self._accounts),
            # The first account of an empty registry has to be primary
            is_primary=not self._accounts,
        )
        self._accounts.append(account)
        self._sort()
        logger.info("account_added", name=clean)
        return account.model_copy()
    
    def remove(self, name: str) -> None:
        """
        Remove a non-primary account.
        
        Raises:
            AccountNotFound: If absent
            CannotRemovePrimary: If it is the primary account
        """
        account = self._require(name)
        if account.is_primary:
            raise CannotRemovePrimary(f"Cannot remove the primary account: {account.name}")
        self._accounts.remove(account)
        logger.info("account_removed", name=account.name)
    
    def set_primary(self, name: str) -> None:
        """
        Make `name` the only primary account.
        
        Raises:
            AccountNotFound: If absent
        """
        target = self._require(name)
        for account in self._accounts:
            account.is_primary = account is target
        logger.info("primary_account_set", name=target.name)
    
    def move(self, name: str, direction: Union[int, str]) -> bool:
        """
        Swap sort_order with the neighbour in `direction` (UP/-1/"up", DOWN/1/"down").
        
        Returns:
            False at either boundary (no change), True otherwise
            
        Raises:
            AccountNotFound: If absent
        """
        if isinstance(direction, str):
            step = {"up": UP, "down": DOWN}.get(direction.lower())
            if step is None:
                raise ValueError(f"Unknown direction: {direction!r}")
        else:
            step = UP if direction < 0 else DOWN
        
        account = self._require(name)
        idx = self._accounts.index(account)
        other_idx = idx + step
        if other_idx < 0 or other_idx >= len(self._accounts):
            return False
        
        orders = [a.sort_order for a in self._accounts]
        if None in orders or len(set(orders)) != len(orders):
            # Swapping needs a distinct value per account; renumber in current order
            for position, item in enumerate(self._accounts):
                item.sort_order = position
        
        other = self._accounts[other_idx]
        account.sort_order, other.sort_order = other.sort_order, account.sort_order
        self._sort()
        return True
