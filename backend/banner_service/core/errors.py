"""Error kinds raised by services and routes.

The HTTP layer (see ``banner_service.main``) maps each kind to a status code;
nothing below it deals with status codes directly.
"""


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str = "Internal error"):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__(message)


class ValidationError(ServiceError):
    status_code = 400


class StorageError(ServiceError):
    status_code = 500


class InvalidTokenError(ServiceError):
    """Tracking token rejected. The message never says why."""

    status_code = 400

    def __init__(self):
        super().__init__("Invalid tracking token.")
