"""App-level domain errors raised by the stores and mapped by the error handler."""


class DomainError(Exception):
    """Base class for store/domain errors with a safe, user-facing meaning."""


class DuplicateUserError(DomainError):
    """A user with the same username or email is already registered."""


class ResourceNotFoundError(DomainError):
    """A library record (deck, quiz, lesson, mind map ...) does not exist."""

    def __init__(self, resource: str, resource_id: object) -> None:
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class UserNotFoundError(ResourceNotFoundError):
    """The referenced user id is unknown."""

    def __init__(self, user_id: object) -> None:
        super().__init__("User", user_id)
