# catalog/errors.py


class CatalogError(Exception):
    """Base error rendered by the API as ``{"error": message}``."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidQueryError(CatalogError):
    status_code = 400


class StoreError(CatalogError):
    """The store could not be reached or rejected an operation."""

    status_code = 500


class ConfigError(Exception):
    pass
