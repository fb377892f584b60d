"""Stock aggregation: fold raw batches into a per-product grouped view.

Everything here is a pure function of the batches and products passed in.
Nothing is cached between calls; the grouped view and both alert feeds are
rebuilt from scratch on every call.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

from src.models.batch import Batch
from src.models.enums import Importance
from src.models.product import Product

DEFAULT_EXPIRY_WINDOW_DAYS = 3

# Sort key for batches without an expiry date: after every real date.
NO_EXPIRY = date.max


class AlertReason(str, Enum):
    """Why a product shows up in an alert feed."""

    OUT_OF_STOCK = "out_of_stock"
    EXPIRING_STOCK = "expiring_stock"  # low only because of imminent expiry
    LOW_STOCK = "low_stock"
    EXPIRING_SOON = "expiring_soon"
    OPTIONAL_OUT_OF_STOCK = "optional_out_of_stock"
    OPTIONAL_RESTOCK = "optional_restock"

    @property
    def label(self) -> str:
        return ALERT_LABELS[self]


ALERT_LABELS: dict[AlertReason, str] = {
    AlertReason.OUT_OF_STOCK: "Out of stock",
    AlertReason.EXPIRING_STOCK: "Low due to imminent expiry",
    AlertReason.LOW_STOCK: "Low stock",
    AlertReason.EXPIRING_SOON: "Expiring soon",
    AlertReason.OPTIONAL_OUT_OF_STOCK: "Out of stock (optional)",
    AlertReason.OPTIONAL_RESTOCK: "Optional restock",
}


@dataclass(frozen=True)
class GroupedProduct:
    """Aggregated stock of one product, derived from its batches."""

    product_id: int
    household_id: int
    name: str
    normalized_name: str
    category: str
    unit: str
    importance: Importance
    min_quantity: float | None
    is_ghost: bool
    threshold: float | None
    total_quantity: float
    healthy_quantity: float
    expiring_quantity: float
    batch_count: int
    earliest_expiry: date | None
    has_expiring_batch: bool
    batches: tuple[Batch, ...] = ()


@dataclass(frozen=True)
class StockAlert:
    """A product flagged by classification."""

    product: GroupedProduct
    reason: AlertReason
    severity: str  # importance tier for critical alerts, "expiry"/"low_optional" otherwise

    @property
    def label(self) -> str:
        return self.reason.label

    @property
    def is_critical(self) -> bool:
        return self.reason in CRITICAL_REASONS


@dataclass(frozen=True)
class StockView:
    """Grouped view of a household plus its two alert feeds."""

    products: list[GroupedProduct] = field(default_factory=list)
    critical: list[StockAlert] = field(default_factory=list)
    suggestions: list[StockAlert] = field(default_factory=list)

    def find(self, product_id: int) -> GroupedProduct | None:
        return next((p for p in self.products if p.product_id == product_id), None)

    def critical_for(self, product_id: int) -> StockAlert | None:
        return next((a for a in self.critical if a.product.product_id == product_id), None)


def resolve_threshold(product: Product) -> float | None:
    """Return the minimum stock for a product, or None if it is ghost."""
    if product.is_ghost:
        return None
    if product.min_quantity is not None:
        return product.min_quantity
    return Importance(product.importance).default_threshold


def days_until_expiry(batch: Batch, today: date) -> int | None:
    if batch.expiry_date is None:
        return None
    return (batch.expiry_date - today).days


def is_expiring(batch: Batch, today: date, window_days: int = DEFAULT_EXPIRY_WINDOW_DAYS) -> bool:
    """Check if a batch expires within the window (already expired counts too)."""
    days = days_until_expiry(batch, today)
    return days is not None and days <= window_days


def consumption_order(batches: Iterable[Batch]) -> list[Batch]:
    """Order batches soonest-expiring first, undated batches last."""
    return sorted(batches, key=lambda b: (b.expiry_date or NO_EXPIRY, b.id or 0))


class _Accumulator:
    def __init__(self, product: Product) -> None:
        self.product = product
        self.total = 0.0
        self.healthy = 0.0
        self.expiring = 0.0
        self.earliest: date | None = None
        self.batches: list[Batch] = []

    def add(self, batch: Batch, today: date, window_days: int) -> None:
        self.total += batch.quantity
        # Sentinels contribute nothing but the product's presence
        if batch.quantity <= 0:
            return
        self.batches.append(batch)
        if is_expiring(batch, today, window_days):
            self.expiring += batch.quantity
        else:
            self.healthy += batch.quantity
        if batch.expiry_date is not None and (
            self.earliest is None or batch.expiry_date < self.earliest
        ):
            self.earliest = batch.expiry_date

    def freeze(self) -> GroupedProduct:
        product = self.product
        return GroupedProduct(
            product_id=product.id,
            household_id=product.household_id,
            name=product.name,
            normalized_name=product.normalized_name,
            category=product.category,
            unit=product.unit,
            importance=Importance(product.importance),
            min_quantity=product.min_quantity,
            is_ghost=bool(product.is_ghost),
            threshold=resolve_threshold(product),
            total_quantity=round(self.total, 3),
            healthy_quantity=round(self.healthy, 3),
            expiring_quantity=round(self.expiring, 3),
            batch_count=len(self.batches),
            earliest_expiry=self.earliest,
            has_expiring_batch=self.expiring > 0,
            batches=tuple(consumption_order(self.batches)),
        )


def group_batches(
    batches: Iterable[Batch],
    today: date,
    window_days: int = DEFAULT_EXPIRY_WINDOW_DAYS,
) -> list[GroupedProduct]:
    """Fold batches (with their product loaded) into one row per product."""
    groups: dict[int, _Accumulator] = {}
    for batch in batches:
        product = batch.product
        if product is None:
            continue
        acc = groups.get(product.id)
        if acc is None:
            acc = groups[product.id] = _Accumulator(product)
        acc.add(batch, today, window_days)

    grouped = [acc.freeze() for acc in groups.values()]
    return sorted(grouped, key=lambda g: g.normalized_name)


def classify(group: GroupedProduct) -> StockAlert | None:
    """Classify one product as a critical alert, a suggestion, or OK (None).

    Only critical and high tier products can produce a critical alert;
    ghost products are never classified.
    """
    if group.is_ghost or group.threshold is None:
        return None

    threshold = group.threshold
    is_low = group.healthy_quantity <= threshold or group.total_quantity == 0

    if group.importance.auto_restocks and is_low:
        if group.total_quantity == 0:
            reason = AlertReason.OUT_OF_STOCK
        elif group.expiring_quantity > 0:
            reason = AlertReason.EXPIRING_STOCK
        else:
            reason = AlertReason.LOW_STOCK
        return StockAlert(product=group, reason=reason, severity=group.importance.value)

    # Expiry takes precedence over the optional restock hint
    if group.expiring_quantity > 0:
        return StockAlert(product=group, reason=AlertReason.EXPIRING_SOON, severity="expiry")

    if group.importance == Importance.NORMAL and threshold > 0 and group.healthy_quantity <= threshold:
        reason = (
            AlertReason.OPTIONAL_OUT_OF_STOCK
            if group.total_quantity == 0
            else AlertReason.OPTIONAL_RESTOCK
        )
        return StockAlert(product=group, reason=reason, severity="low_optional")

    return None


CRITICAL_REASONS = frozenset(
    {AlertReason.OUT_OF_STOCK, AlertReason.EXPIRING_STOCK, AlertReason.LOW_STOCK}
)


def build_stock_view(
    batches: Iterable[Batch],
    today: date | None = None,
    window_days: int = DEFAULT_EXPIRY_WINDOW_DAYS,
) -> StockView:
    """Recompute the grouped view and alert feeds from raw batches."""
    today = today or date.today()
    grouped = group_batches(batches, today, window_days)

    critical: list[StockAlert] = []
    suggestions: list[StockAlert] = []
    for group in grouped:
        alert = classify(group)
        if alert is None:
            continue
        if alert.is_critical:
            critical.append(alert)
        else:
            suggestions.append(alert)

    return StockView(products=grouped, critical=critical, suggestions=suggestions)
