from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CategoryIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=100)
    is_income: bool = False
    description: str = Field(default="", max_length=200)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Category name must not be blank")
        return value


class RecordIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: date
    category_id: int
    description: str = Field(default="", max_length=200)
    # signed: negative for spending, positive for income
    amount_cents: int


class InvestmentIn(BaseModel):
    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)

    date: date
    code: str = Field(..., min_length=1, max_length=20)
    unit_price_cents: int = Field(..., ge=0)
    qty: float

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Investment code must not be blank")
        return value
