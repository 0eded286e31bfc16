"""
GST engine: HSN rate lookup, CGST/SGST/IGST split and order-level aggregation.

Amounts enter as rupees (Decimal, int, str or float) and leave as Decimal
rupees with two places. In between everything is integer paisa, so a split
always adds back up to its total and repeated rounding cannot drift.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from commerce.domain.money import from_paisa, round_half_up, to_decimal

GST_SLABS = frozenset(Decimal(rate) for rate in ("0", "3", "5", "12", "18", "28"))
DEFAULT_GST_RATE = Decimal("18")
# Courier/logistics services (SAC 9965) are taxed at 18% whatever the goods' rate.
SHIPPING_GST_RATE = Decimal("18")
DEFAULT_RATE_TABLE_PATH = Path(__file__).parent / "data" / "gst_rates.json"

_HSN_CODE_RE = re.compile(r"^\d{4,8}$")
_STATE_CODE_RE = re.compile(r"^\d{2}$")


class RateTableError(ValueError):
    """Raised when GST rate table data is malformed."""


class InvalidStateCodeError(ValueError):
    """Raised when a GST state code is not two digits."""


class NegativeDiscountError(ValueError):
    """Raised when an order-level discount below zero reaches the tax path."""


def validate_state_code(code: str) -> str:
    """Return ``code`` if it is a two-digit GST state code."""
    if not isinstance(code, str) or not _STATE_CODE_RE.match(code):
        raise InvalidStateCodeError(f"Invalid GST state code: {code!r}")
    return code


@dataclass(frozen=True)
class HSNRateEntry:
    """One tax-classification rule of the rate table."""
    hsn_code: str
    rate: Decimal
    description: str = ""
    threshold_amount: Decimal | None = None
    rate_above_threshold: Decimal | None = None

    def __post_init__(self):
        if not _HSN_CODE_RE.match(self.hsn_code):
            raise RateTableError(f"HSN code must be 4 to 8 digits: {self.hsn_code!r}")

        object.__setattr__(self, "rate", to_decimal(self.rate))
        if self.rate not in GST_SLABS:
            raise RateTableError(f"HSN {self.hsn_code}: {self.rate} is not a GST slab")

        if (self.threshold_amount is None) != (self.rate_above_threshold is None):
            raise RateTableError(
                f"HSN {self.hsn_code}: threshold_amount and rate_above_threshold "
                "must be given together"
            )
        if self.threshold_amount is not None:
            object.__setattr__(self, "threshold_amount", to_decimal(self.threshold_amount))
            object.__setattr__(self, "rate_above_threshold", to_decimal(self.rate_above_threshold))
            if self.rate_above_threshold not in GST_SLABS:
                raise RateTableError(
                    f"HSN {self.hsn_code}: {self.rate_above_threshold} is not a GST slab"
                )

    @property
    def has_threshold(self) -> bool:
        return self.threshold_amount is not None

    def rate_for(self, unit_price) -> Decimal:
        """Rate for a unit price; a price equal to the threshold keeps the base rate."""
        if self.has_threshold and to_decimal(unit_price) > self.threshold_amount:
            return self.rate_above_threshold
        return self.rate


class GSTRateTable:
    """HSN rate entries keyed by code, with a fallback rate for unknown codes."""

    def __init__(self, entries: Iterable[HSNRateEntry], default_rate=DEFAULT_GST_RATE):
        self._entries = tuple(entries)
        self._by_code: dict[str, HSNRateEntry] = {}
        for entry in self._entries:
            if entry.hsn_code in self._by_code:
                raise RateTableError(f"Duplicate HSN code {entry.hsn_code}")
            self._by_code[entry.hsn_code] = entry
        self.default_rate = to_decimal(default_rate)

    def __iter__(self) -> Iterator[HSNRateEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, hsn_code: str) -> HSNRateEntry | None:
        return self._by_code.get(hsn_code.strip())

    def resolve_rate(self, hsn_code: str, unit_price) -> Decimal:
        entry = self.lookup(hsn_code)
        if entry is None:
            return self.default_rate
        return entry.rate_for(unit_price)

    @classmethod
    def from_dict(cls, data: dict) -> "GSTRateTable":
        try:
            entries = [HSNRateEntry(**row) for row in data["entries"]]
        except (KeyError, TypeError) as e:
            raise RateTableError(f"Malformed rate table: {e}") from e
        return cls(entries, default_rate=data.get("default_rate", DEFAULT_GST_RATE))

    @classmethod
    def from_json(cls, path: str | Path) -> "GSTRateTable":
        with open(path, encoding="utf-8") as f:
            data = json.load(f, parse_float=Decimal)
        return cls.from_dict(data)


@lru_cache(maxsize=None)
def load_rate_table(path: str | Path = DEFAULT_RATE_TABLE_PATH) -> GSTRateTable:
    """Load and cache a rate table file; tables are immutable once loaded."""
    return GSTRateTable.from_json(path)


def resolve_rate(hsn_code: str, unit_price, table: GSTRateTable | None = None) -> Decimal:
    """GST rate for an HSN code at a unit price. Unknown codes get the default rate."""
    if table is None:
        table = load_rate_table()
    return table.resolve_rate(hsn_code, unit_price)


@dataclass(frozen=True)
class GSTSplit:
    """Tax on one taxable amount, split by place of supply."""
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    total_tax: Decimal
    is_inter_state: bool

    def as_dict(self) -> dict:
        return {
            "cgst": str(self.cgst),
            "sgst": str(self.sgst),
            "igst": str(self.igst),
            "total_tax": str(self.total_tax),
            "is_inter_state": self.is_inter_state,
        }


def _split_paisa(total: int, is_inter_state: bool) -> tuple[int, int, int]:
    if is_inter_state:
        return 0, 0, total
    cgst = round_half_up(Decimal(total) / 2)
    # SGST takes the remainder so odd-paisa totals still add up.
    return cgst, total - cgst, 0


def _make_split(total: int, is_inter_state: bool) -> GSTSplit:
    cgst, sgst, igst = _split_paisa(total, is_inter_state)
    return GSTSplit(
        cgst=from_paisa(cgst),
        sgst=from_paisa(sgst),
        igst=from_paisa(igst),
        total_tax=from_paisa(total),
        is_inter_state=is_inter_state,
    )


def split_tax(taxable_amount, rate_percent, seller_state_code: str, buyer_state_code: str) -> GSTSplit:
    """
    Compute GST on ``taxable_amount`` and split it.

    Same state code gives CGST + SGST, different codes give IGST. Any
    non-negative rate is accepted so a future slab change needs no code change.
    """
    is_inter_state = seller_state_code != buyer_state_code
    # rupees * percent == paisa
    total = round_half_up(to_decimal(taxable_amount) * to_decimal(rate_percent))
    return _make_split(total, is_inter_state)


def tax_shipping(shipping_cost, seller_state_code: str, buyer_state_code: str) -> GSTSplit:
    """GST on a shipping charge at the fixed logistics rate."""
    return split_tax(shipping_cost, SHIPPING_GST_RATE, seller_state_code, buyer_state_code)


@dataclass(frozen=True)
class TaxableItem:
    """A line item as the tax engine sees it."""
    unit_price: Decimal
    quantity: int
    hsn_code: str | None = None
    gst_rate: Decimal | None = None

    def __post_init__(self):
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price))
        if self.gst_rate is not None:
            object.__setattr__(self, "gst_rate", to_decimal(self.gst_rate))


@dataclass(frozen=True)
class LineItemTax:
    taxable_value: Decimal
    gst_rate: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal
    total_tax: Decimal


@dataclass(frozen=True)
class OrderTax:
    """Tax breakdown for a whole order, one LineItemTax per input line."""
    line_item_taxes: tuple[LineItemTax, ...]
    subtotal: Decimal
    discount_amount: Decimal
    total_cgst: Decimal
    total_sgst: Decimal
    total_igst: Decimal
    total_tax: Decimal
    is_inter_state: bool

    @property
    def taxable_value(self) -> Decimal:
        return sum((line.taxable_value for line in self.line_item_taxes), Decimal("0.00"))


def _item_rate(item: TaxableItem, table: GSTRateTable) -> Decimal:
    # A seller-specified rate wins, including an explicit 0 for exempt goods.
    if item.gst_rate is not None:
        return item.gst_rate
    if item.hsn_code:
        return table.resolve_rate(item.hsn_code, item.unit_price)
    return table.default_rate


def tax_order(
    line_items: Sequence[TaxableItem],
    seller_state_code: str,
    buyer_state_code: str,
    discount_amount=0,
    table: GSTRateTable | None = None,
) -> OrderTax:
    """
    Tax every line of an order.

    The order-level discount is spread over the lines by value share before
    tax. A zero subtotal means a zero discount ratio. Negative discounts are
    not clamped here; callers validate them.
    """
    if table is None:
        table = load_rate_table()
    is_inter_state = seller_state_code != buyer_state_code

    line_totals = [
        round_half_up(item.unit_price * item.quantity * 100) for item in line_items
    ]
    subtotal = sum(line_totals)
    discount = round_half_up(to_decimal(discount_amount) * 100)

    totals = {"cgst": 0, "sgst": 0, "igst": 0}
    line_item_taxes = []
    for item, line_total in zip(line_items, line_totals):
        if subtotal > 0:
            line_discount = Decimal(line_total) * discount / subtotal
        else:
            line_discount = Decimal(0)
        taxable = round_half_up(Decimal(line_total) - line_discount)

        rate = _item_rate(item, table)
        tax = round_half_up(Decimal(taxable) * rate / 100)
        cgst, sgst, igst = _split_paisa(tax, is_inter_state)
        totals["cgst"] += cgst
        totals["sgst"] += sgst
        totals["igst"] += igst

        line_item_taxes.append(LineItemTax(
            taxable_value=from_paisa(taxable),
            gst_rate=rate,
            cgst=from_paisa(cgst),
            sgst=from_paisa(sgst),
            igst=from_paisa(igst),
            total_tax=from_paisa(tax),
        ))

    return OrderTax(
        line_item_taxes=tuple(line_item_taxes),
        subtotal=from_paisa(subtotal),
        discount_amount=from_paisa(discount),
        total_cgst=from_paisa(totals["cgst"]),
        total_sgst=from_paisa(totals["sgst"]),
        total_igst=from_paisa(totals["igst"]),
        total_tax=from_paisa(totals["cgst"] + totals["sgst"] + totals["igst"]),
        is_inter_state=is_inter_state,
    )
