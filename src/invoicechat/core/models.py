"""Invoice payload models decoded from tool results.

Decoding is lenient: a field the panel cannot use becomes ``None`` (or an empty
list) instead of failing the whole payload, so whether a payload counts as an
invoice depends only on the classifier's presence rules.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator, model_validator


def _text_or_none(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _number_or_none(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.replace(",", "").strip())
        except ValueError:
            return None
    return None


def _mapping_or_none(value: Any) -> Mapping[str, Any] | None:
    return value if isinstance(value, Mapping) else None


class _UpstreamModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Reference(_UpstreamModel):
    """Named reference to another accounting entity (customer, item)."""

    name: str | None = None
    value: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _from_scalar(cls, data: Any) -> Any:
        # A bare "Acme" or 17 is treated as the display name.
        if isinstance(data, Mapping):
            return data
        return {"name": _text_or_none(data)}

    @field_validator("name", "value", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str | None:
        return _text_or_none(v)


def _reference_or_none(value: Any) -> Any:
    if value is None or isinstance(value, (list, bool)):
        return None
    return value


class SalesItemLineDetail(_UpstreamModel):
    item_ref: Reference | None = Field(default=None, alias="ItemRef")
    qty: float | None = Field(default=None, alias="Qty")
    unit_price: float | None = Field(default=None, alias="UnitPrice")

    @field_validator("item_ref", mode="before")
    @classmethod
    def _reference(cls, v: Any) -> Any:
        return _reference_or_none(v)

    @field_validator("qty", "unit_price", mode="before")
    @classmethod
    def _number(cls, v: Any) -> float | None:
        return _number_or_none(v)


class InvoiceLine(_UpstreamModel):
    description: str | None = Field(default=None, alias="Description")
    amount: float | None = Field(default=None, alias="Amount")
    detail_type: str | None = Field(default=None, alias="DetailType")
    sales_item: SalesItemLineDetail | None = Field(default=None, alias="SalesItemLineDetail")

    @field_validator("description", "detail_type", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str | None:
        return _text_or_none(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _number(cls, v: Any) -> float | None:
        return _number_or_none(v)

    @field_validator("sales_item", mode="before")
    @classmethod
    def _detail(cls, v: Any) -> Mapping[str, Any] | None:
        return _mapping_or_none(v)

    @property
    def label(self) -> str:
        if self.description:
            return self.description
        if self.sales_item and self.sales_item.item_ref and self.sales_item.item_ref.name:
            return self.sales_item.item_ref.name
        return self.detail_type or "-"


class InvoiceRecord(_UpstreamModel):
    """Single invoice as returned by the invoice tools."""

    id: str | None = Field(default=None, alias="Id")
    doc_number: str | None = Field(default=None, alias="DocNumber")
    txn_date: str | None = Field(default=None, alias="TxnDate")
    due_date: str | None = Field(default=None, alias="DueDate")
    customer_ref: Reference | None = Field(default=None, alias="CustomerRef")
    total_amount: float | None = Field(default=None, alias="TotalAmt")
    balance: float | None = Field(default=None, alias="Balance")
    lines: list[InvoiceLine] = Field(default_factory=list, alias="Line")

    @model_validator(mode="before")
    @classmethod
    def _from_non_mapping(cls, data: Any) -> Any:
        # List elements that are not objects keep their slot; the raw value stays available as an extra.
        if isinstance(data, Mapping):
            return data
        return {"raw": data}

    @field_validator("id", "doc_number", "txn_date", "due_date", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str | None:
        return _text_or_none(v)

    @field_validator("customer_ref", mode="before")
    @classmethod
    def _reference(cls, v: Any) -> Any:
        return _reference_or_none(v)

    @field_validator("total_amount", "balance", mode="before")
    @classmethod
    def _number(cls, v: Any) -> float | None:
        return _number_or_none(v)

    @field_validator("lines", mode="before")
    @classmethod
    def _lines(cls, v: Any) -> list[Mapping[str, Any]]:
        if not isinstance(v, list):
            return []
        return [line for line in v if isinstance(line, Mapping)]

    @property
    def number(self) -> str:
        return self.doc_number or self.id or "-"

    @property
    def customer_name(self) -> str:
        if self.customer_ref is None:
            return "-"
        return self.customer_ref.name or self.customer_ref.value or "-"


class InvoiceList(RootModel[list[InvoiceRecord]]):
    """Ordered invoices as returned by the list and search tools."""

    def __iter__(self):  # type: ignore[override]
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int) -> InvoiceRecord:
        return self.root[index]


StructuredResult = InvoiceList | InvoiceRecord


def decode_record(raw: Mapping[str, Any]) -> InvoiceRecord:
    return InvoiceRecord.model_validate(dict(raw))


def decode_list(raw: list[Any]) -> InvoiceList:
    return InvoiceList.model_validate(list(raw))
