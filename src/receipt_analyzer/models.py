"""Data models for receipt analysis results."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ReceiptItem(BaseModel):
    """Individual line item on a receipt."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    name: str
    price: str  # raw text as printed, not guaranteed numeric


class Receipt(BaseModel):
    """Structured receipt data read from a receipt image."""

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    brand: str
    store: str
    date: str  # free-form, not guaranteed ISO
    items: list[ReceiptItem]
    total: str
    confidence: float = Field(ge=0.0, le=1.0)

    @field_validator("confidence", mode="before")
    @classmethod
    def reject_boolean_confidence(cls, value):
        # bool is an int subclass, so lax float parsing would take true as 1.0
        if isinstance(value, bool):
            raise ValueError("confidence must be a number, not a boolean")
        return value
