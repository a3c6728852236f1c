"""Keyword rule for auto-categorizing expenses from their note."""

from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class CategoryRule(BaseModel):
    """If `keyword` appears in a note (case-insensitive), use `category`."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)
    
    id: str = Field(default_factory=lambda: str(uuid4()))
    keyword: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., min_length=1, max_length=100)
    
    def matches(self, note: str) -> bool:
        return self.keyword.lower() in note.lower()
