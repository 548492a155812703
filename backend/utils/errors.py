"""Domain exceptions raised by the eco-scoring, recommendation and report code.

Routes let these propagate; ``main.py`` maps them to JSON error responses
using each class's ``status_code``.
"""


class EcoBazaarError(Exception):
    """Base exception for all marketplace domain errors."""

    status_code = 400


class NotFoundError(EcoBazaarError):
    """Raised when a product, order or user id does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidStateError(EcoBazaarError):
    """Raised when an order transition or return is not allowed in its current state."""

    status_code = 409


class UnauthorizedError(EcoBazaarError):
    """Raised when the acting user does not own or may not act on the target."""

    status_code = 403


class InvalidInputError(EcoBazaarError):
    """Raised for malformed arguments such as a bad report month."""

    status_code = 400
