"""
Registered models and model groups.

A Model is the derived schema of one record type: its fields in
declaration order plus naming for URLs and storage. Models are built once
at registration and never modified afterwards, so request handlers read
them without locking.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TextIO

from .errors import ConfigurationError
from .fields import Field

if TYPE_CHECKING:
    from jinja2 import Environment

    from adminforge.admin import Admin


@dataclass(frozen=True, eq=False)
class Model:
    """
    Derived schema of one registered record type.

    Attributes:
        name: Display name
        slug: URL slug, unique within an Admin
        table_name: Storage table name
        record_type: The registered class
        fields: Fields in attribute declaration order
        instance: Instance passed to registration, if any; never mutated
        templates: Jinja2 environment of the Admin the model belongs to
    """

    name: str
    slug: str
    table_name: str
    record_type: type
    fields: tuple[Field, ...] = ()
    instance: Any = field(default=None, repr=False)
    templates: Environment | None = field(default=None, repr=False)

    # -------------------------------------------------------------------------
    # Projections
    # -------------------------------------------------------------------------

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def table_columns(self) -> list[str]:
        """Storage columns, for SELECT/INSERT/UPDATE column lists."""
        return [f.column_name for f in self.fields]

    def list_fields(self) -> list[Field]:
        return [f for f in self.fields if f.list_visible]

    def list_labels(self) -> list[str]:
        """Column headings of the list view."""
        return [f.label for f in self.list_fields()]

    def list_columns(self) -> list[str]:
        """Storage columns of the list view, index-aligned with list_labels()."""
        return [f.column_name for f in self.list_fields()]

    def field_by_name(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _templates(self, templates: Environment | None) -> Environment:
        templates = templates if templates is not None else self.templates
        if templates is None:
            raise ConfigurationError(f"Model {self.name} has no templates; register it with an Admin")
        return templates

    def render_form(
        self,
        out: TextIO,
        data: Sequence[Any] | None = None,
        errors: Sequence[str] | None = None,
        *,
        templates: Environment | None = None,
    ) -> None:
        """
        Render every field as a form control.

        ``data`` and ``errors`` are matched to fields by position. When
        ``data`` does not have exactly one value per field the form is
        rendered empty, as for a new record.

        ``templates`` overrides the environment bound at registration.
        """
        env = self._templates(templates)
        has_data = data is not None and len(data) == len(self.fields)
        for i, f in enumerate(self.fields):
            value = data[i] if has_data else None
            error = errors[i] if errors is not None and i < len(errors) else ""
            f.render(out, value, error or "", templates=env)

    def render_row(
        self,
        out: TextIO,
        data: Sequence[Any],
        *,
        templates: Environment | None = None,
    ) -> None:
        """Render list cells; ``data`` is aligned with list_columns()."""
        env = self._templates(templates)
        for i, f in enumerate(self.list_fields()):
            value = data[i] if i < len(data) else None
            f.render(out, value, templates=env, cell=True)


@dataclass(eq=False)
class ModelGroup:
    """Named collection of models shown together on the admin index."""

    admin: Admin = field(repr=False)
    name: str
    slug: str
    models: list[Model] = field(default_factory=list)

    def register(
        self,
        record: Any,
        *,
        replace: bool = False,
        skip_invalid: bool = False,
    ) -> Model:
        """
        Register a record type (or an instance of one) in this group.

        Call from a single start-up sequence; registration is not meant to
        run concurrently with other registrations on the same Admin.

        Args:
            record: Record class or instance
            replace: Replace a model already registered under the same slug
            skip_invalid: Drop attributes whose tag or options are invalid
                instead of failing

        Returns:
            The registered model

        Raises:
            RegistrationError: a tag or field option is invalid
            DuplicateSlugError: the slug is taken and replace is False
        """
        from .registration import build_model

        model = build_model(
            record,
            name_transform=self.admin.name_transform,
            foreign_key_suffix=self.admin.config.foreign_key_suffix,
            skip_invalid=skip_invalid,
            templates=self.admin.templates,
        )
        self.admin.add_model(self, model, replace=replace)
        return model
