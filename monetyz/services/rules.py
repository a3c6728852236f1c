"""
Keyword Auto-Categorisation Rules

A note containing a rule's keyword (case-insensitive) gets that rule's
category. Rules are checked in list order; the first hit wins. New rules go
to the front of the list.
"""

from typing import Optional

from monetyz.log import get_logger
from monetyz.models.rule import CategoryRule
from monetyz.services.storage.local import LocalRuleStore
from monetyz.validation.errors import DuplicateRule, InvalidRule


logger = get_logger(__name__)


class CategoryRuleBook:
    """Ordered rule list, persisted through a LocalRuleStore when one is given."""
    
    def __init__(self, store: Optional[LocalRuleStore] = None, rules: Optional[list[CategoryRule]] = None):
        self._store = store
        if rules is not None:
            self._rules = list(rules)
        elif store is not None:
            self._rules = store.load()
        else:
            self._rules = []
    
    @property
    def rules(self) -> list[CategoryRule]:
        return list(self._rules)
    
    def _persist(self) -> None:
        if self._store is not None:
            self._store.save(self._rules)
    
    def add(self, keyword: str, category: str) -> CategoryRule:
        """
        Add a rule at the front of the list.
        
        Raises:
            InvalidRule: If keyword or category is blank
            DuplicateRule: If the keyword already exists (case-insensitive)
        """
        keyword = (keyword or "").strip()
        category = (category or "").strip()
        if not keyword or not category:
            raise InvalidRule("Both keyword and category are required")
        if any(r.keyword.lower() == keyword.lower() for r in self._rules):
            raise DuplicateRule(f"Keyword already exists: {keyword}")
        
        rule = CategoryRule(keyword=keyword, category=category)
        self._rules.insert(0, rule)
        self._persist()
        logger.info("rule_added", keyword=keyword, category=category)
        return rule
    
    def remove(self, rule_id: str) -> bool:
        before = len(self._rules)
        self._rules = [r for r in self._rules if r.id != rule_id]
        if len(self._rules) == before:
            return False
        self._persist()
        return True
    
    def clear(self) -> None:
        self._rules = []
        self._persist()
    
    def match(self, note: Optional[str]) -> Optional[str]:
        """Category of the first rule whose keyword is in `note`, else None."""
        if not note:
            return None
        for rule in self._rules:
            if rule.matches(note):
                return rule.category
        return None
