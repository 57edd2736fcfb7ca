"""Failures raised by the user service."""


class UserServiceError(Exception):
    """Base error for user service failures."""


class UserNotFoundError(UserServiceError):
    """No user exists with the requested id."""

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User not found with ID: {user_id}")


class DuplicateEmailError(UserServiceError):
    """The email is already owned by another user."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User with email {email} already exists")


class InvalidSortError(UserServiceError):
    """The requested sort field is not sortable."""

    def __init__(self, sort_by: str, allowed: list[str]):
        self.sort_by = sort_by
        self.allowed = allowed
        super().__init__(f"Cannot sort by '{sort_by}'. Allowed fields: {', '.join(allowed)}")
