"""
adminforge - admin pages generated from annotated record types.

Register dataclasses or pydantic models and get list, create, edit and
delete pages driven by the schema derived from their attributes.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _metadata_version

from .admin import Admin, setup
from .config import AdminConfig, load_config
from .core.errors import (
    AdminError,
    ConfigurationError,
    ConfigurationFailure,
    DuplicateSlugError,
    MalformedAnnotation,
    RegistrationError,
    StorageError,
)
from .core.fields import FieldKind
from .core.introspect import Tag
from .core.model import Model, ModelGroup
from .core.strings import snake_case

try:
    __version__ = _metadata_version("adminforge")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "Admin",
    "AdminConfig",
    "AdminError",
    "ConfigurationError",
    "ConfigurationFailure",
    "DuplicateSlugError",
    "FieldKind",
    "MalformedAnnotation",
    "Model",
    "ModelGroup",
    "RegistrationError",
    "StorageError",
    "Tag",
    "load_config",
    "setup",
    "snake_case",
]
