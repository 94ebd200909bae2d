"""
Registration: derive a Model from a record type.

Runs once per record type at start-up. Each attribute is classified,
turned into a field variant, configured from its tag, and frozen.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .errors import (
    ConfigurationFailure,
    MalformedAnnotation,
    RegistrationContext,
    RegistrationError,
    make_registration_error,
)
from .fields import FIELD_OVERRIDE_KEY, Field, create_field, select_field_kind
from .introspect import RecordAttribute, iter_attributes, record_type_of
from .model import Model
from .strings import slugify
from .tags import SKIP, parse_tag

if TYPE_CHECKING:
    from jinja2 import Environment

logger = logging.getLogger(__name__)

NameTransform = Callable[[str], str]

# Method a record type may define to choose its own display name
ADMIN_NAME_METHOD = "admin_name"


def display_name(record: Any) -> str:
    """
    Display name of a record: ``admin_name()`` if usable, else the class name.

    On a class, ``admin_name`` must be a classmethod or staticmethod to be
    called; a plain method is only called when an instance was registered.
    """
    record_type = record_type_of(record)
    name = record_type.__name__

    static = inspect.getattr_static(record_type, ADMIN_NAME_METHOD, None)
    if static is None:
        return name
    if record is record_type and not isinstance(static, (classmethod, staticmethod)):
        return name

    named = getattr(record, ADMIN_NAME_METHOD)()
    if not isinstance(named, str) or not named.strip():
        raise RegistrationError(
            f"{ADMIN_NAME_METHOD}() must return a non-empty string",
            RegistrationContext(model=name),
        )
    return named


def field_name_for(attribute: RecordAttribute, foreign_key_suffix: str) -> str:
    """Internal field name; references get the foreign-key suffix."""
    if attribute.is_reference:
        return attribute.name + foreign_key_suffix
    return attribute.name


def column_name_for(
    field_name: str,
    options: dict[str, str],
    name_transform: NameTransform | None,
) -> str:
    """Storage column: ``column`` tag, else transform(field name), else field name."""
    if "column" in options:
        return options["column"]
    if name_transform is not None:
        return name_transform(field_name)
    return field_name


def build_field(
    attribute: RecordAttribute,
    *,
    name_transform: NameTransform | None = None,
    foreign_key_suffix: str = "Id",
) -> Field:
    """
    Build and configure the field for one attribute.

    Raises:
        MalformedAnnotation: the tag cannot be parsed
        ConfigurationFailure: the variant rejects an option
    """
    options = parse_tag(attribute.tag)
    name = field_name_for(attribute, foreign_key_suffix)

    kind = select_field_kind(attribute.category, options.get(FIELD_OVERRIDE_KEY))
    field = create_field(kind, name)
    field.configure(options)

    attrs = field.attributes()
    attrs.label = options.get("label", name)
    attrs.column_name = column_name_for(name, options, name_transform)
    attrs.list_visible = "list" in options
    return field


def build_model(
    record: Any,
    *,
    name_transform: NameTransform | None = None,
    foreign_key_suffix: str = "Id",
    skip_invalid: bool = False,
    templates: Environment | None = None,
) -> Model:
    """
    Derive a Model from a record class or instance.

    Args:
        record: Record class or instance
        name_transform: Maps class and field names to storage names
        foreign_key_suffix: Appended to the names of reference attributes
        skip_invalid: Log and drop attributes with invalid tags instead of raising
        templates: Jinja2 environment the model renders with

    Returns:
        Model with frozen fields, not yet added to any Admin

    Raises:
        RegistrationError: on an unparseable tag, a rejected option,
            unresolvable annotations, or a name that slugifies to nothing
    """
    record_type = record_type_of(record)
    type_name = record_type.__name__
    name = display_name(record)

    table_name = name_transform(type_name) if name_transform is not None else type_name
    slug = slugify(name)
    if not slug:
        raise RegistrationError(
            f"display name {name!r} has no URL-safe characters",
            RegistrationContext(model=name),
        )

    try:
        attributes = iter_attributes(record_type)
    except NameError as exc:
        raise RegistrationError(
            f"cannot resolve annotations: {exc}", RegistrationContext(model=name)
        ) from exc

    fields: list[Field] = []
    for attribute in attributes:
        if attribute.tag == SKIP:
            logger.debug("Skipping %s.%s", name, attribute.name)
            continue

        try:
            field = build_field(
                attribute,
                name_transform=name_transform,
                foreign_key_suffix=foreign_key_suffix,
            )
        except (MalformedAnnotation, ConfigurationFailure) as exc:
            error = make_registration_error(exc, name, attribute.name)
            if not skip_invalid:
                raise error from exc
            logger.warning("Dropping field: %s", error)
            continue

        logger.debug(
            "%s.%s -> %s field %r (column %r)",
            name,
            attribute.name,
            field.kind.value,
            field.name,
            field.column_name,
        )
        field.freeze()
        fields.append(field)

    logger.debug("Derived model %s (%d fields)", name, len(fields))

    return Model(
        name=name,
        slug=slug,
        table_name=table_name,
        record_type=record_type,
        fields=tuple(fields),
        instance=None if record is record_type else record,
        templates=templates,
    )
