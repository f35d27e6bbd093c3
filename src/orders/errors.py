"""Structured errors raised by the order pipeline.

Every error carries a ``kind``, a human-readable ``message`` and the
``identifier`` of the offending field, product, store or order, so that the
HTTP layer can map it to a status code without parsing strings.
"""


class OrderPipelineError(Exception):
    """Base class for all order pipeline errors."""

    kind = "Internal"

    def __init__(self, message: str, identifier: str | None = None, **details) -> None:
        super().__init__(message)
        self.message = message
        self.identifier = identifier
        self.details = details

    def to_dict(self) -> dict:
        payload = {
            "kind": self.kind,
            "message": self.message,
            "identifier": self.identifier,
        }
        if self.details:
            payload["details"] = self.details
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, identifier={self.identifier!r})"


class BadRequest(OrderPipelineError):
    """Missing or malformed input. No state was changed."""

    kind = "BadRequest"


class NotFound(OrderPipelineError):
    """A referenced product, store or order does not exist."""

    kind = "NotFound"


class InvalidItem(OrderPipelineError):
    """A requested line item failed validation while pricing."""

    kind = "InvalidItem"

    def __init__(self, product_id: str, reason: str) -> None:
        super().__init__(reason, identifier=product_id)
        self.product_id = product_id
        self.reason = reason


class StockConflict(OrderPipelineError):
    """Stock could not be reserved after the order was persisted.

    ``unreconciled`` lists the product ids whose stock could not be restored
    (or whose decrement outcome is unknown) and need manual reconciliation.
    """

    kind = "StockConflict"

    def __init__(self, message: str, identifier: str | None = None, order_id: str | None = None, unreconciled=None):
        super().__init__(message, identifier=identifier, order_id=order_id, unreconciled=list(unreconciled or []))
        self.order_id = order_id
        self.unreconciled = list(unreconciled or [])


class Forbidden(OrderPipelineError):
    """The caller's role or ownership does not permit the operation."""

    kind = "Forbidden"


class InvalidTransition(OrderPipelineError):
    """The requested status change is not allowed by the order state machine."""

    kind = "InvalidTransition"


class Conflict(OrderPipelineError):
    """The persisted state changed underneath the caller, or retries ran out."""

    kind = "Conflict"


class NumberGenerationExhausted(OrderPipelineError):
    """No unused order number was found within the retry budget."""

    kind = "NumberGenerationExhausted"


class UpstreamUnavailable(OrderPipelineError):
    """A collaborator timed out or could not be reached."""

    kind = "UpstreamUnavailable"

    def __init__(self, message: str, identifier: str | None = None, service: str | None = None) -> None:
        super().__init__(message, identifier=identifier, service=service)
        self.service = service
