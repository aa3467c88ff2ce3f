"""Data models for scraped records."""
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class RecordRef(BaseModel):
    """Lightweight reference to one transaction, produced by the list pager."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Order id, or a synthesized id when unrecoverable")
    detail_url: str = Field(default="", description="Order details page URL")
    raw_amount: float = Field(default=0.0, description="Amount shown in the list row")
    synthetic_id: bool = Field(default=False, description="True when id was synthesized")


class Address(BaseModel):
    """Shipping address. ``full`` always carries the raw block text."""

    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    full: str = ""


class Item(BaseModel):
    """One line item of an order."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    price: float = 0.0
    quantity: int = 1
    seller: str = ""
    image_url: str = Field(default="", alias="imageUrl")
    product_url: str = Field(default="", alias="productUrl")


class DetailedRecord(BaseModel):
    """Fully extracted transaction.

    Serialized with the camelCase names the report renderer consumes
    (``orderId``, ``total``, ``refund``, ``orderScreenshot``...).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., alias="orderId")
    date: str = ""
    amount: float = Field(default=0.0, alias="total")
    refund_amount: float = Field(default=0.0, alias="refund")
    status: str = "unknown"
    recipient: str = ""
    address: Address = Field(default_factory=Address)
    payment_method: str = Field(default="", alias="paymentMethod")
    tracking_number: str = Field(default="", alias="trackingNumber")
    items: list[Item] = Field(default_factory=list)
    artifact_path: str = Field(default="", alias="orderScreenshot")
    detail_url: str = Field(default="", alias="orderDetailsUrl")
    synthetic_id: bool = Field(default=False, alias="syntheticId")
    extraction: Literal["complete", "degraded"] = "complete"

    @computed_field(alias="netAmount")
    @property
    def net_amount(self) -> float:
        return self.amount - self.refund_amount

    @classmethod
    def degraded(cls, ref: RecordRef, date: str = "") -> "DetailedRecord":
        """Minimal record (id, date, amount) for a job that failed."""
        return cls(
            id=ref.id,
            date=date,
            amount=ref.raw_amount,
            detail_url=ref.detail_url,
            synthetic_id=ref.synthetic_id,
            extraction="degraded",
        )

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class DateRange(BaseModel):
    start: str = ""
    end: str = ""


class RunMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date_range: DateRange = Field(default_factory=DateRange, alias="dateRange")
    total_records: int = Field(default=0, alias="totalTransactions")
    total_amount: float = Field(default=0.0, alias="totalAmount")
    generated_at: str = Field(default_factory=utc_now_iso, alias="generatedAt")
    scraped_at: str = Field(default_factory=utc_now_iso, alias="scrapedAt")


class RunSnapshot(BaseModel):
    """Persisted artifact of one run."""

    model_config = ConfigDict(populate_by_name=True)

    metadata: RunMetadata = Field(default_factory=RunMetadata)
    records: list[DetailedRecord] = Field(default_factory=list, alias="transactions")

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
