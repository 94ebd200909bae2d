"""
Error types for adminforge setup, registration, and storage.
"""

from dataclasses import dataclass
from typing import Optional


class AdminError(Exception):
    """Base exception for all adminforge errors."""

    def __init__(self, message: str, context: Optional["RegistrationContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message


class ConfigurationError(AdminError):
    """
    Raised when the admin cannot be set up.

    Examples:
    - Username or password missing
    - Database cannot be opened
    - Template directory missing a required template
    """

    pass


class MalformedAnnotation(AdminError):
    """
    Raised when a declarative field tag cannot be parsed.

    Examples:
    - Empty token (``label=x,,list``)
    - Empty key or value (``=x``, ``label=``)
    - Repeated key
    """

    def __init__(self, message: str, tag: str):
        self.tag = tag
        super().__init__(f"{message} in tag {tag!r}")


class ConfigurationFailure(AdminError):
    """Raised when a field variant rejects one of its tag options."""

    def __init__(self, message: str, option: str):
        self.option = option
        super().__init__(f"option {option!r}: {message}")


class RegistrationError(AdminError):
    """
    Raised when a record type cannot be registered.

    Wraps MalformedAnnotation and ConfigurationFailure (available as
    ``__cause__``) with the model and attribute at fault.
    """

    @property
    def model(self) -> str | None:
        return self.context.model if self.context else None

    @property
    def attribute(self) -> str | None:
        return self.context.attribute if self.context else None


class DuplicateSlugError(RegistrationError):
    """Raised when a model's slug is already registered and replace was not requested."""

    def __init__(self, slug: str, model: str):
        self.slug = slug
        super().__init__(
            f"slug {slug!r} is already registered",
            RegistrationContext(model=model),
        )


class StorageError(AdminError):
    """Raised when the storage backend fails a read or write."""

    pass


class FieldValueError(ValueError):
    """Raised by ``Field.clean`` when a submitted value is rejected."""

    pass


@dataclass
class RegistrationContext:
    """
    Location of a registration failure.

    Attributes:
        model: Display name of the model being registered
        attribute: Source attribute name, when the failure is attribute-specific
    """

    model: str
    attribute: str | None = None

    def format(self) -> str:
        """
        Format the context as a short location string.

        Returns:
            String like "model Post, attribute author"
        """
        if self.attribute:
            return f"model {self.model}, attribute {self.attribute}"
        return f"model {self.model}"


def make_registration_error(
    cause: AdminError,
    model: str,
    attribute: str | None = None,
) -> RegistrationError:
    """
    Helper to wrap a tag or field failure as a RegistrationError.

    Args:
        cause: The MalformedAnnotation or ConfigurationFailure that was raised
        model: Display name of the model being registered
        attribute: Attribute whose tag or configuration failed

    Returns:
        RegistrationError with context attached; the caller raises it ``from cause``
    """
    context = RegistrationContext(model=model, attribute=attribute)
    return RegistrationError(cause.message, context)
