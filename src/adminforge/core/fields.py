"""
Field abstraction.

A Field is a typed, configurable, renderable projection of one record
attribute. The set of variants is closed (see FieldKind); every variant
offers the same contract:

- ``configure(options)``: apply tag options, raising ConfigurationFailure
- ``render(out, value, error, templates=env)``: write a form control or list cell
- ``attributes()``: shared name/label/column/list-visible record
- ``clean(raw)``: convert submitted form text, raising FieldValueError
"""

from __future__ import annotations

import math
from abc import ABC
from collections.abc import Mapping
from datetime import date, datetime, time
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar, TextIO
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field as PydanticField

from .errors import ConfigurationFailure, FieldValueError
from .introspect import AttributeCategory

if TYPE_CHECKING:
    from jinja2 import Environment


# =============================================================================
# Field Kinds
# =============================================================================


class FieldKind(StrEnum):
    """Field variants."""

    TEXT = "text"
    INTEGER = "int"
    FLOAT = "float"
    TIME = "time"
    URL = "url"


# Tag key that overrides the category-based variant choice
FIELD_OVERRIDE_KEY = "Field"

_OVERRIDE_KINDS: dict[str, FieldKind] = {
    "url": FieldKind.URL,
}

_CATEGORY_KINDS: dict[AttributeCategory, FieldKind] = {
    AttributeCategory.STRING: FieldKind.TEXT,
    AttributeCategory.INTEGER: FieldKind.INTEGER,
    AttributeCategory.FLOAT: FieldKind.FLOAT,
    AttributeCategory.STRUCT: FieldKind.TIME,
}


def select_field_kind(category: AttributeCategory, override: str | None = None) -> FieldKind:
    """
    Choose a field variant for an attribute.

    An explicit ``Field=url`` override wins. Any other override value, or
    none, falls back to the attribute's category. Categories without a
    dedicated variant (references, bools, collections, unknown types)
    become text fields.
    """
    if override is not None and override in _OVERRIDE_KINDS:
        return _OVERRIDE_KINDS[override]
    return _CATEGORY_KINDS.get(category, FieldKind.TEXT)


# =============================================================================
# Shared Attributes
# =============================================================================


class FieldAttributes(BaseModel):
    """Attributes every field variant carries."""

    model_config = ConfigDict(validate_assignment=True)

    name: str = PydanticField(description="Internal name, matches the record attribute")
    label: str = PydanticField(default="", description="Display label")
    column_name: str = PydanticField(default="", description="Storage column name")
    list_visible: bool = PydanticField(default=False, description="Shown in list views")


class FrozenFieldAttributes(FieldAttributes):
    """FieldAttributes after registration has finished with them."""

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Option Helpers
# =============================================================================


def _int_option(options: Mapping[str, str], key: str) -> int | None:
    if key not in options:
        return None
    try:
        return int(options[key])
    except ValueError:
        raise ConfigurationFailure(f"expected an integer, got {options[key]!r}", key) from None


def _float_option(options: Mapping[str, str], key: str) -> float | None:
    if key not in options:
        return None
    try:
        value = float(options[key])
    except ValueError:
        raise ConfigurationFailure(f"expected a number, got {options[key]!r}", key) from None
    if not math.isfinite(value):
        raise ConfigurationFailure(f"expected a finite number, got {options[key]!r}", key)
    return value


def _check_bounds(low: float | None, high: float | None) -> None:
    if low is not None and high is not None and low > high:
        raise ConfigurationFailure(f"min {low} is greater than max {high}", "min")


# =============================================================================
# Base Field
# =============================================================================


class Field(ABC):
    """
    Base class for field variants.

    Subclasses set ``kind`` and override ``configure``, ``clean`` and
    ``input_value`` as needed.
    """

    kind: ClassVar[FieldKind]
    options: BaseModel

    def __init__(self, name: str):
        self._attrs: FieldAttributes = FieldAttributes(name=name, label=name, column_name=name)
        self._frozen = False

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._attrs.name!r}>"

    # -------------------------------------------------------------------------
    # Attributes
    # -------------------------------------------------------------------------

    def attributes(self) -> FieldAttributes:
        return self._attrs

    @property
    def name(self) -> str:
        return self._attrs.name

    @property
    def label(self) -> str:
        return self._attrs.label

    @property
    def column_name(self) -> str:
        return self._attrs.column_name

    @property
    def list_visible(self) -> bool:
        return self._attrs.list_visible

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Make the field's attributes read-only."""
        if not self._frozen:
            self._attrs = FrozenFieldAttributes(**self._attrs.model_dump())
            self._frozen = True

    # -------------------------------------------------------------------------
    # Contract
    # -------------------------------------------------------------------------

    def configure(self, options: Mapping[str, str]) -> None:
        """Apply variant-specific tag options. Unknown keys are ignored."""
        if self._frozen:
            raise RuntimeError(f"field {self.name!r} is already registered")

    def clean(self, raw: str | None) -> Any:
        """Convert submitted form text to a value; empty input is None."""
        if raw is None or not raw.strip():
            return None
        return self._convert(raw.strip())

    def _convert(self, raw: str) -> Any:
        return raw

    def display(self, value: Any) -> str:
        """Plain text shown in a list cell."""
        if value is None:
            return ""
        return str(value)

    def input_value(self, value: Any) -> str:
        """Text placed in the form control."""
        return self.display(value)

    def render(
        self,
        out: TextIO,
        value: Any = None,
        error: str = "",
        *,
        templates: Environment,
        cell: bool = False,
    ) -> None:
        """
        Write this field as HTML.

        Args:
            out: Text stream to write to
            value: Current value, or None for an empty control
            error: Validation error shown with the control
            templates: Jinja2 environment holding the fields/ templates
            cell: Render a list cell instead of a form control
        """
        if cell:
            template = templates.get_template("fields/cell.html")
            out.write(template.render(field=self._attrs, kind=self.kind.value, text=self.display(value)))
            return

        template = templates.get_template(f"fields/{self.kind.value}.html")
        out.write(
            template.render(
                field=self._attrs,
                kind=self.kind.value,
                value=self.input_value(value),
                error=error or "",
                options=self.options,
            )
        )


# =============================================================================
# Variants
# =============================================================================


class TextOptions(BaseModel):
    """Options for text fields."""

    max_length: int | None = None
    placeholder: str = ""
    multiline: bool = False

    model_config = ConfigDict(frozen=True)


class TextField(Field):
    """Free text. Also the fallback variant for unrecognised types."""

    kind = FieldKind.TEXT

    def __init__(self, name: str):
        super().__init__(name)
        self.options = TextOptions()

    def configure(self, options: Mapping[str, str]) -> None:
        super().configure(options)
        max_length = _int_option(options, "max_length")
        if max_length is not None and max_length <= 0:
            raise ConfigurationFailure("must be positive", "max_length")
        self.options = TextOptions(
            max_length=max_length,
            placeholder=options.get("placeholder", ""),
            multiline="multiline" in options,
        )

    def clean(self, raw: str | None) -> Any:
        # Text keeps empty strings and surrounding whitespace
        value = raw or ""
        if self.options.max_length is not None and len(value) > self.options.max_length:
            raise FieldValueError(f"At most {self.options.max_length} characters")
        return value


class IntOptions(BaseModel):
    """Options for integer fields."""

    min: int | None = None
    max: int | None = None

    model_config = ConfigDict(frozen=True)


class IntField(Field):
    """Whole numbers, optionally bounded."""

    kind = FieldKind.INTEGER

    def __init__(self, name: str):
        super().__init__(name)
        self.options = IntOptions()

    def configure(self, options: Mapping[str, str]) -> None:
        super().configure(options)
        low, high = _int_option(options, "min"), _int_option(options, "max")
        _check_bounds(low, high)
        self.options = IntOptions(min=low, max=high)

    def _convert(self, raw: str) -> int:
        try:
            value = int(raw)
        except ValueError:
            raise FieldValueError("Enter a whole number") from None
        if self.options.min is not None and value < self.options.min:
            raise FieldValueError(f"Must be at least {self.options.min}")
        if self.options.max is not None and value > self.options.max:
            raise FieldValueError(f"Must be at most {self.options.max}")
        return value


class FloatOptions(BaseModel):
    """Options for float fields."""

    min: float | None = None
    max: float | None = None
    step: float | None = None

    model_config = ConfigDict(frozen=True)


class FloatField(Field):
    """Decimal numbers, optionally bounded."""

    kind = FieldKind.FLOAT

    def __init__(self, name: str):
        super().__init__(name)
        self.options = FloatOptions()

    def configure(self, options: Mapping[str, str]) -> None:
        super().configure(options)
        low, high = _float_option(options, "min"), _float_option(options, "max")
        _check_bounds(low, high)
        step = _float_option(options, "step")
        if step is not None and step <= 0:
            raise ConfigurationFailure("must be positive", "step")
        self.options = FloatOptions(min=low, max=high, step=step)

    def _convert(self, raw: str) -> float:
        try:
            value = float(raw)
        except ValueError:
            raise FieldValueError("Enter a number") from None
        if not math.isfinite(value):
            raise FieldValueError("Enter a number")
        if self.options.min is not None and value < self.options.min:
            raise FieldValueError(f"Must be at least {self.options.min:g}")
        if self.options.max is not None and value > self.options.max:
            raise FieldValueError(f"Must be at most {self.options.max:g}")
        return value


class TimeOptions(BaseModel):
    """Options for time fields."""

    format: str = "%Y-%m-%d %H:%M"

    model_config = ConfigDict(frozen=True)


class TimeField(Field):
    """Dates and timestamps, shown and entered with a strftime format."""

    kind = FieldKind.TIME

    def __init__(self, name: str):
        super().__init__(name)
        self.options = TimeOptions()

    def configure(self, options: Mapping[str, str]) -> None:
        super().configure(options)
        fmt = options.get("format", TimeOptions().format)
        if "%" not in fmt:
            raise ConfigurationFailure(f"not a strftime pattern: {fmt!r}", "format")
        try:
            datetime(2000, 1, 2, 3, 4, 5).strftime(fmt)
        except ValueError as exc:
            raise ConfigurationFailure(str(exc), "format") from None
        self.options = TimeOptions(format=fmt)

    def _convert(self, raw: str) -> datetime:
        try:
            return datetime.strptime(raw, self.options.format)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            raise FieldValueError(
                f"Enter a date matching {datetime(2024, 1, 31, 14, 30).strftime(self.options.format)}"
            ) from None

    def display(self, value: Any) -> str:
        if isinstance(value, str):
            try:
                value = datetime.fromisoformat(value)
            except ValueError:
                return value
        if isinstance(value, (date, time)):
            return value.strftime(self.options.format)
        return super().display(value)


class URLOptions(BaseModel):
    """Options for URL fields."""

    schemes: tuple[str, ...] = ("http", "https")

    model_config = ConfigDict(frozen=True)


class URLField(Field):
    """Absolute URLs restricted to an allow-list of schemes."""

    kind = FieldKind.URL

    def __init__(self, name: str):
        super().__init__(name)
        self.options = URLOptions()

    def configure(self, options: Mapping[str, str]) -> None:
        super().configure(options)
        if "schemes" not in options:
            self.options = URLOptions()
            return
        schemes = tuple(s.strip().lower() for s in options["schemes"].split("|"))
        for scheme in schemes:
            if not scheme.isalpha():
                raise ConfigurationFailure(f"invalid scheme {scheme!r}", "schemes")
        self.options = URLOptions(schemes=schemes)

    def _convert(self, raw: str) -> str:
        parts = urlsplit(raw)
        if parts.scheme.lower() not in self.options.schemes or not parts.netloc:
            allowed = ", ".join(self.options.schemes)
            raise FieldValueError(f"Enter a full URL ({allowed})")
        return raw


# =============================================================================
# Construction
# =============================================================================


FIELD_TYPES: dict[FieldKind, type[Field]] = {
    FieldKind.TEXT: TextField,
    FieldKind.INTEGER: IntField,
    FieldKind.FLOAT: FloatField,
    FieldKind.TIME: TimeField,
    FieldKind.URL: URLField,
}


def create_field(kind: FieldKind, name: str) -> Field:
    """Instantiate the variant for ``kind``."""
    return FIELD_TYPES[kind](name)
