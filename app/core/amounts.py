"""
Line-item arithmetic shared by invoices, quotations, purchases,
purchase orders and debit notes.

    item_amount   = amount if given, else quantity * rate
    taxable       = sum(item_amount)
    discount      = sum(item.discount)
    tax           = sum(item.tax)
    total         = taxable + tax - discount

Aggregates supplied by the client win over the computed ones, field by
field. The computed values are always kept on the result as well.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Optional

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Convert int/float/str/Decimal/None to Decimal (None -> 0)."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize(value: Any) -> Decimal:
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _get(item: Any, key: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(key)
    return getattr(item, key, None)


def line_amount(item: Any) -> Decimal:
    """Explicit amount if present, otherwise quantity * rate."""
    amount = _get(item, "amount")
    if amount is not None and amount != "":
        return quantize(amount)
    return quantize(to_decimal(_get(item, "quantity")) * to_decimal(_get(item, "rate")))


@dataclass
class Totals:
    taxable_amount: Decimal = ZERO
    total_discount: Decimal = ZERO
    total_tax: Decimal = ZERO
    total_amount: Decimal = ZERO


@dataclass
class DocumentTotals(Totals):
    """Final totals plus the purely computed values they may override."""
    computed: Totals = field(default_factory=Totals)
    overridden: tuple = ()


def compute_totals(
    items: Iterable[Any],
    taxable_amount: Optional[Any] = None,
    total_discount: Optional[Any] = None,
    total_tax: Optional[Any] = None,
    total_amount: Optional[Any] = None,
    round_off: bool = False,
) -> DocumentTotals:
    """
    Compute document totals from line items, honouring client overrides.

    Args:
        items: line items (dicts or objects with quantity/rate/discount/tax/amount)
        taxable_amount, total_discount, total_tax, total_amount: client aggregates;
            None means "not supplied"
        round_off: round the computed grand total to a whole unit

    Returns:
        DocumentTotals with final values, computed values and the names
        of the fields that were overridden.
    """
    items = list(items)
    computed = Totals(
        taxable_amount=quantize(sum((line_amount(i) for i in items), ZERO)),
        total_discount=quantize(sum((to_decimal(_get(i, "discount")) for i in items), ZERO)),
        total_tax=quantize(sum((to_decimal(_get(i, "tax")) for i in items), ZERO)),
    )
    computed.total_amount = quantize(
        computed.taxable_amount + computed.total_tax - computed.total_discount
    )

    overridden = []
    supplied = {
        "taxable_amount": taxable_amount,
        "total_discount": total_discount,
        "total_tax": total_tax,
        "total_amount": total_amount,
    }
    final = {}
    for name, value in supplied.items():
        if value is not None:
            final[name] = quantize(value)
            overridden.append(name)
        else:
            final[name] = getattr(computed, name)

    if total_amount is None:
        final["total_amount"] = quantize(
            final["taxable_amount"] + final["total_tax"] - final["total_discount"]
        )
        if round_off:
            final["total_amount"] = final["total_amount"].quantize(
                Decimal("1"), rounding=ROUND_HALF_UP
            ).quantize(TWO_PLACES)

    return DocumentTotals(
        taxable_amount=final["taxable_amount"],
        total_discount=final["total_discount"],
        total_tax=final["total_tax"],
        total_amount=final["total_amount"],
        computed=computed,
        overridden=tuple(overridden),
    )


def normalize_items(items: Iterable[Any]) -> list[dict]:
    """
    Return line items as plain dicts with ``amount`` filled in.

    Used before persisting items into a JSON column.
    """
    normalized = []
    for item in items:
        data = dict(item) if isinstance(item, Mapping) else item.model_dump(mode="json")
        data["amount"] = str(line_amount(data))
        normalized.append(data)
    return normalized
