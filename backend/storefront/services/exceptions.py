"""
Service Exceptions

Business errors raised from inside a transaction. Raising one rolls the
transaction back; the HTTP layer reports them as client errors.
"""

from typing import Any, Dict, Optional


class StorefrontError(Exception):
    """Base exception for business rule violations."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code or "STOREFRONT_ERROR"
        self.details = details or {}
        super().__init__(self.message)


class ReferencedEntityNotFoundError(StorefrontError):
    """Raised when a write references an entity that does not exist."""

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            message=f"{entity} with id {entity_id} not found",
            error_code="REFERENCED_ENTITY_NOT_FOUND",
            details={"entity": entity, "entity_id": entity_id},
        )


class InsufficientStockError(StorefrontError):
    """Raised when a product holds fewer units than an order requests."""

    def __init__(self, product_id: int, requested: int, available: Optional[int]):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            message=(
                f"Insufficient stock for product {product_id}: "
                f"requested {requested}, available {available}"
            ),
            error_code="INSUFFICIENT_STOCK",
            details={
                "product_id": product_id,
                "requested": requested,
                "available": available,
            },
        )
