from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


class InvoiceRecord(BaseModel):
    """Off-chain invoice awaiting (or holding) its on-chain confirmation."""

    name: str
    tx_id: str
    invoice_id: str | None = None
    status: InvoiceStatus = InvoiceStatus.PENDING
    created_at: datetime

    @model_validator(mode="after")
    def _confirmed_has_invoice_id(self):
        if self.status == InvoiceStatus.CONFIRMED and not self.invoice_id:
            raise ValueError("confirmed invoice must carry an invoice_id")
        return self


class CreateInvoiceRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(default=None)
    tx_id: str | None = Field(default=None, alias="txId")

    @field_validator("name", "tx_id")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    tx_id: str = Field(alias="txId")
    invoice_id: str | None = Field(default=None, alias="invoiceId")
    status: InvoiceStatus
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_record(cls, record: InvoiceRecord) -> "InvoiceResponse":
        return cls(
            name=record.name,
            tx_id=record.tx_id,
            invoice_id=record.invoice_id,
            status=record.status,
            created_at=record.created_at,
        )
