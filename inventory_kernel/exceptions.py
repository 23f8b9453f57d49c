"""
Errors raised by the inventory kernel.

Callers branch on the class and read the payload from attributes; no one
should have to parse a message.  Each class has a stable ``code`` string
suitable for an API response, and the structured logger copies the public
attributes into ``exc_<name>`` fields.

    try:
        stock.record_sale(product_id, 5, Decimal("19.99"), "web")
    except InsufficientStockError as e:
        respond(e.code, requested=e.requested, available=e.available)

Hierarchy and codes::

    InventoryKernelError               INVENTORY_KERNEL_ERROR
      ValidationError                  VALIDATION_ERROR        nothing written yet
      NotFoundError                    NOT_FOUND
        ProductNotFoundError           PRODUCT_NOT_FOUND
        SaleNotFoundError              SALE_NOT_FOUND
        ReturnNotFoundError            RETURN_NOT_FOUND
        PredictionNotFoundError        PREDICTION_NOT_FOUND
      InsufficientStockError           INSUFFICIENT_STOCK      quantity would go negative
      ConflictError                    CONFLICT
        ReturnStateConflictError       RETURN_STATE_CONFLICT   illegal status transition
      StorageError                     STORAGE_ERROR           begin or commit failed
      ImmutabilityViolationError       IMMUTABILITY_VIOLATION  append-only row touched
"""


class InventoryKernelError(Exception):
    """Root of the hierarchy; subclasses override ``code``."""

    code: str = "INVENTORY_KERNEL_ERROR"


# Validation


class ValidationError(InventoryKernelError):
    """Input rejected before any storage operation."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


# Not-found exceptions


class NotFoundError(InventoryKernelError):
    """Base exception for missing referenced records."""

    code: str = "NOT_FOUND"


class ProductNotFoundError(NotFoundError):
    """Product with given ID was not found."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class SaleNotFoundError(NotFoundError):
    """Sale with given ID was not found."""

    code: str = "SALE_NOT_FOUND"

    def __init__(self, sale_id: str):
        self.sale_id = sale_id
        super().__init__(f"Sale not found: {sale_id}")


class ReturnNotFoundError(NotFoundError):
    """Return with given ID was not found."""

    code: str = "RETURN_NOT_FOUND"

    def __init__(self, return_id: str):
        self.return_id = return_id
        super().__init__(f"Return not found: {return_id}")


class PredictionNotFoundError(NotFoundError):
    """Demand prediction with given ID was not found."""

    code: str = "PREDICTION_NOT_FOUND"

    def __init__(self, prediction_id: str):
        self.prediction_id = prediction_id
        super().__init__(f"Demand prediction not found: {prediction_id}")


# Stock


class InsufficientStockError(InventoryKernelError):
    """A mutation would drive product quantity below zero."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(
        self,
        product_id: str,
        requested: int,
        available: int,
        product_name: str | None = None,
    ):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        self.product_name = product_name
        label = product_name or product_id
        super().__init__(
            f"Insufficient stock for product {label}: "
            f"requested {requested}, available {available}"
        )


# Conflict


class ConflictError(InventoryKernelError):
    """Base exception for state-machine violations."""

    code: str = "CONFLICT"


class ReturnStateConflictError(ConflictError):
    """Return is not in a state that allows the requested transition."""

    code: str = "RETURN_STATE_CONFLICT"

    def __init__(self, return_id: str, current_status: str, attempted_status: str):
        self.return_id = return_id
        self.current_status = current_status
        self.attempted_status = attempted_status
        super().__init__(
            f"Return {return_id} cannot move from '{current_status}' "
            f"to '{attempted_status}'"
        )


# Storage


class StorageError(InventoryKernelError):
    """The underlying transaction mechanism failed."""

    code: str = "STORAGE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Storage failure during {operation}: {detail}")


# Immutability


class ImmutabilityViolationError(InventoryKernelError):
    """An UPDATE or DELETE reached an append-only row."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"{entity_type} {entity_id} is append-only: {reason}"
        )
