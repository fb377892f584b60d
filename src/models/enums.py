"""Enums for model fields."""

from enum import Enum


class Importance(str, Enum):
    """Importance tier of a tracked product."""

    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"
    GHOST = "ghost"

    @property
    def default_threshold(self) -> float | None:
        """Minimum stock used when a product has no explicit override."""
        return DEFAULT_THRESHOLDS.get(self)

    @property
    def auto_restocks(self) -> bool:
        """Check if shortages of this tier create shopping entries automatically."""
        return self in (Importance.CRITICAL, Importance.HIGH)


DEFAULT_THRESHOLDS: dict[Importance, float] = {
    Importance.CRITICAL: 4,
    Importance.HIGH: 2,
    Importance.NORMAL: 1,
}


class Unit(str, Enum):
    """Units a product can be measured in."""

    UNITS = "units"
    KG = "kg"
    G = "g"
    L = "l"
    ML = "ml"


class ShoppingStatus(str, Enum):
    """Lifecycle states of a shopping list entry."""

    ACTIVE = "active"
    CHECKED = "checked"
    POSTPONED = "postponed"
    BOUGHT = "bought"
    ARCHIVED = "archived"

    @property
    def is_open(self) -> bool:
        """Check if the entry is still on the list (not bought or archived)."""
        return self in (ShoppingStatus.ACTIVE, ShoppingStatus.CHECKED, ShoppingStatus.POSTPONED)


class ShoppingPriority(str, Enum):
    """Priority of a shopping list entry."""

    PANIC = "panic"
    LOW = "low"
    NORMAL = "normal"

    @classmethod
    def for_importance(cls, importance: Importance) -> "ShoppingPriority":
        """Derive the priority of an automatic entry from the product's tier."""
        if importance == Importance.CRITICAL:
            return cls.PANIC
        if importance == Importance.HIGH:
            return cls.LOW
        return cls.NORMAL
