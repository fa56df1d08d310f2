"""Shared exceptions module."""

from typing import Optional


class PostloomException(Exception):
    """Base exception for Postloom services."""

    pass


class NotFoundException(PostloomException):
    """Exception raised when an object is not found."""

    def __init__(self, message: Optional[str] = "Object not found"):
        """Create a new NotFoundException instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class ConfigurationError(PostloomException):
    """Exception raised when required configuration is missing or invalid.

    Always raised before any network call is attempted. Not retryable.
    """

    def __init__(self, setting: str, message: Optional[str] = "Missing or invalid setting"):
        """Create a new ConfigurationError instance.

        Args:
        ----
            setting (str): The name of the offending setting.
            message (str, optional): The error message. Has default message.

        """
        self.setting = setting
        self.message = message
        super().__init__(f"{message}: {setting}")


class EncodingError(PostloomException):
    """Exception raised when text handed to the canonicalizer is not well-formed UTF-8."""

    def __init__(self, message: Optional[str] = "Malformed UTF-8 input"):
        """Create a new EncodingError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)


class InvalidStateError(PostloomException):
    """Raised when an operation is not allowed in the object's current state."""

    def __init__(self, message: Optional[str] = "Object is not in a valid state"):
        """Create a new InvalidStateError instance.

        Args:
        ----
            message (str, optional): The error message. Has default message.

        """
        self.message = message
        super().__init__(self.message)
