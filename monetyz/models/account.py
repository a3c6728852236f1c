"""Account record as kept by the account registry and its stores."""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from monetyz.models.transaction import utc_now


class Account(BaseModel):
    """
    A named account.
    
    `sort_order` only matters relative to other accounts and may have gaps.
    Rows loaded from older remote data can lack it (None sorts last).
    """
    model_config = ConfigDict(str_strip_whitespace=True)
    
    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(
        ...,
        min_length=1,
        max_length=60,
        description="Display name, unique per user (case-insensitive)"
    )
    sort_order: Optional[int] = Field(
        default=None,
        description="Display/iteration order"
    )
    is_primary: bool = Field(
        default=False,
        description="Exactly one account per user is primary"
    )
    created_at: datetime = Field(default_factory=utc_now)
