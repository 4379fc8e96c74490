# backend/services/errors.py
"""Error taxonomy shared by the inventory services.

Each error carries the HTTP status the API answers with; main.py turns them
into ``{"error": message}`` bodies.
"""


class InventoryError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(InventoryError):
    status_code = 400


class AuthenticationError(InventoryError):
    status_code = 401


class AuthorizationError(InventoryError):
    status_code = 403


class NotFoundError(InventoryError):
    status_code = 404


class ConflictError(InventoryError):
    status_code = 400


class InsufficientStockError(ConflictError):
    def __init__(self, component_id: int, component_name: str, requested: int):
        super().__init__(f'insufficient quantity for component "{component_name}"')
        self.component_id = component_id
        self.component_name = component_name
        self.requested = requested
