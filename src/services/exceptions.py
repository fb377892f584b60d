"""Errors raised by the stock services.

Validation and lookup failures are raised before anything is written, so a
caller that catches them can assume the household's data is unchanged.
"""


class StockError(Exception):
    """Base class for stock engine errors."""


class StockValidationError(StockError, ValueError):
    """A request was rejected: bad quantity, missing destination, empty name."""


class StockNotFoundError(StockError, LookupError):
    """A referenced product, batch or shopping entry does not exist."""

    def __init__(self, kind: str, object_id: int) -> None:
        super().__init__(f"{kind} {object_id} not found")
        self.kind = kind
        self.object_id = object_id


class DuplicateProductError(StockError):
    """A product with the same name already exists in the household."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Product '{name}' already exists")
        self.name = name
