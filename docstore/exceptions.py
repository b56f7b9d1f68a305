"""Custom exception classes for the document store."""


class DocStoreException(Exception):
    """
    Base exception class for all document store errors.
    """
    pass


class ValidationError(DocStoreException):
    """
    Raised when request input is malformed. Nothing has been mutated.
    """
    pass


class AccessDeniedError(DocStoreException):
    """
    Raised when the permission resolver vetoes an operation.
    """
    pass


class NodeNotFoundError(DocStoreException):
    """
    Raised when a requested file or folder does not exist.
    """
    pass


class UserNotFoundError(DocStoreException):
    """
    Raised when a referenced user does not exist.
    """
    pass


class UserAlreadyExistsError(DocStoreException):
    """
    Raised when provisioning a user whose id, email or API key is taken.
    """
    pass


class InvalidAPIKeyError(DocStoreException):
    """
    Raised when an API Key is missing, malformed or unknown.
    """
    pass


class QuotaExceededError(DocStoreException):
    """
    Raised when a content write would push an owner past their storage limit.
    """

    def __init__(self, used: int, limit: int, required: int):
        self.used = used
        self.limit = limit
        self.required = required
        super().__init__(
            f"Storage limit exceeded: used={used} limit={limit} required={required}"
        )


class DependencyFailure(DocStoreException):
    """
    Base class for failures of an external collaborator.
    """
    pass


class ContentStoreError(DependencyFailure):
    """
    Raised when the content store cannot write or delete an object.
    """
    pass


class NotificationDeliveryError(DependencyFailure):
    """
    Raised when the real-time transport rejects or drops an event.
    """
    pass
