from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from lifeledger.models.ledger_entry import TransactionKind


class CategoryBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    kind: TransactionKind | None = Field(default=None, description="Restrict to Income or Expense; empty for both")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate category name - trim whitespace"""
        if not v or not v.strip():
            raise ValueError('Category name cannot be empty')
        return v.strip()


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    is_active: bool


class CategoryOut(CategoryBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
