"""Domain-specific errors for nutrition planning.

Input and catalogue problems are expected failures and carry enough
context (offending field, missing class) for the caller to fix the
request. SchedulingInvariantError signals a defect in the planner itself.
"""


class RaceDayError(Exception):
    """Base exception for all nutrition planning errors."""

    pass


class ValidationError(RaceDayError):
    """Raised when an input value is out of range.

    Attributes:
        field: Name of the offending field (e.g. "duration_hours")
    """

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation failed for {field}: {message}")


class MissingProductError(RaceDayError):
    """Raised when a mandatory product class is absent from the product list.

    Attributes:
        product_class: Missing class ("gel" or "drink")
    """

    def __init__(self, product_class: str):
        self.product_class = product_class
        super().__init__(f"Required product type '{product_class}' not found in product list")


class CatalogError(RaceDayError):
    """Raised when catalogue data cannot be read or parsed."""

    pass


class SchedulingInvariantError(RaceDayError):
    """Raised when the scheduler breaks one of its own invariants.

    Never converted into a user-facing outcome.
    """

    pass
