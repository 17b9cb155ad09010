from typing import Optional, Any, List


class UserStoreError(Exception):
    """
    Base exception for the user store.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class InvalidIdentifierError(UserStoreError):
    """
    Raised when an id string is not a well-formed ObjectId hex string.
    """
    def __init__(self, message: str = "Invalid Id Hex", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_ID", status_code=400, details=details)


class InvalidEntityError(UserStoreError):
    """
    Raised when a delete names a collection that is not customers, addresses or cards.
    """
    def __init__(self, message: str = "Invalid entity", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_ENTITY", status_code=400, details=details)


class NotFoundError(UserStoreError):
    """
    Raised when no document matches a point lookup or a targeted update.
    """
    def __init__(self, message: str = "not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)


class DuplicateUsernameError(UserStoreError):
    """
    Raised when a user write violates the unique username index.
    """
    def __init__(self, message: str = "Username already exists", details: Optional[Any] = None):
        super().__init__(message, code="DUPLICATE_USERNAME", status_code=409, details=details)


class ConnectivityError(UserStoreError):
    """
    Raised when the database cannot be dialed or no connection can be leased.
    """
    def __init__(self, message: str = "Database unavailable", details: Optional[Any] = None):
        super().__init__(message, code="DB_UNAVAILABLE", status_code=503, details=details)


class PartialAggregateFailure(UserStoreError):
    """
    Raised when the user document was written but some nested addresses or
    cards were not. The user stays persisted with the references that did
    succeed; `user` is that degraded aggregate.
    """
    def __init__(
        self,
        user: Any,
        card_errors: Optional[List[Exception]] = None,
        address_errors: Optional[List[Exception]] = None,
    ):
        self.user = user
        self.card_errors = list(card_errors or [])
        self.address_errors = list(address_errors or [])
        message = (
            f"user {getattr(user, 'id', '')} created with errors: "
            f"cards: {_describe(self.card_errors)}; "
            f"addresses: {_describe(self.address_errors)}"
        )
        super().__init__(
            message,
            code="PARTIAL_AGGREGATE_FAILURE",
            status_code=500,
            details={
                "id": getattr(user, "id", None),
                "card_errors": [str(e) for e in self.card_errors],
                "address_errors": [str(e) for e in self.address_errors],
            },
        )


def _describe(errors: List[Exception]) -> str:
    if not errors:
        return "none"
    return ", ".join(str(e) for e in errors)
