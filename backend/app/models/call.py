"""Call for proposals models (read-only to the lifecycle core)."""
from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime
from enum import Enum


class CallStatus(str, Enum):
    """공모 상태."""
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    CLOSED = "CLOSED"


class Call(BaseModel):
    """Time-boxed funding opportunity."""
    id: str
    title: str
    description: str = ""
    deadline: datetime
    status: CallStatus
    budget_min: float = Field(ge=0)
    budget_max: float = Field(ge=0)
    currency: str = "USD"


class CallCreate(BaseModel):
    """Seed payload for the call registry."""
    id: Optional[str] = None
    title: str
    description: str = ""
    deadline: datetime
    status: CallStatus = CallStatus.PUBLISHED
    budget_min: float = Field(default=0, ge=0)
    budget_max: float = Field(ge=0)
    currency: str = "USD"

    @model_validator(mode="after")
    def check_budget_range(self) -> "CallCreate":
        if self.budget_min > self.budget_max:
            raise ValueError("budget_min must not exceed budget_max")
        return self
