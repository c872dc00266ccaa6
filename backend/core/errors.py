"""Error taxonomy shared by the storage layer and the HTTP adapters."""


class InventoryError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StorageError(InventoryError):
    status_code = 503


class StoreNotConfigured(StorageError):
    """No connection string was supplied for the primary store."""


class StoreConnectionError(StorageError):
    """The primary store was unreachable, erroring, or timed out."""


class ValidationFailure(InventoryError):
    status_code = 400


class ItemNotFound(InventoryError):
    status_code = 404


class OwnerNotFound(InventoryError):
    status_code = 404
