"""
Record type introspection.

Enumerates the attributes of a record type in declaration order, together
with the tag string attached to each one and its primitive category.
Supported record types are dataclasses, pydantic models, and plain classes
with annotated attributes.

Tags can be attached three ways::

    @dataclass
    class Post:
        title: Annotated[str, Tag("label=Title,list")]
        link: str = field(default="", metadata={"admin": "Field=url"})

    class Author(BaseModel):
        name: str = Field(json_schema_extra={"admin": "list"})
"""

from __future__ import annotations

import dataclasses
import datetime
import inspect
import types
import typing
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel

# Key used in dataclass field metadata and pydantic json_schema_extra
ADMIN_METADATA_KEY = "admin"


@dataclass(frozen=True)
class Tag:
    """Admin tag attached to an attribute through ``typing.Annotated``."""

    value: str


class AttributeCategory(StrEnum):
    """Primitive shape of an attribute's declared type."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    STRUCT = "struct"  # date/time values
    REFERENCE = "reference"  # another record type, stored as a foreign key
    OTHER = "other"


@dataclass(frozen=True)
class RecordAttribute:
    """One attribute of a record type, as seen by registration."""

    name: str
    annotation: Any
    tag: str
    category: AttributeCategory

    @property
    def is_reference(self) -> bool:
        return self.category == AttributeCategory.REFERENCE


def record_type_of(record: Any) -> type:
    """Return the class of a record, accepting either the class or an instance."""
    return record if isinstance(record, type) else type(record)


def is_record_type(tp: Any) -> bool:
    """
    True for classes that can be referenced as foreign keys.

    Dataclasses, pydantic models, and plain classes that declare their own
    annotated attributes all count; builtins never do.
    """
    if not isinstance(tp, type) or tp.__module__ == "builtins":
        return False
    if dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel):
        return True
    return bool(inspect.get_annotations(tp))


def unwrap_annotation(tp: Any) -> Any:
    """Strip ``Annotated`` and ``Optional`` wrappers from a type."""
    while True:
        origin = typing.get_origin(tp)
        if origin is Annotated:
            tp = typing.get_args(tp)[0]
            continue
        if origin is Union or origin is types.UnionType:
            members = [arg for arg in typing.get_args(tp) if arg is not type(None)]
            if len(members) == 1:
                tp = members[0]
                continue
        return tp


def classify(tp: Any) -> AttributeCategory:
    """
    Map a declared type to its primitive category.

    Unknown and composite types (bool, bytes, lists, unions, UUID, ...) map
    to OTHER; this function never raises.
    """
    tp = unwrap_annotation(tp)

    if typing.get_origin(tp) is Literal:
        values = typing.get_args(tp)
        if values and all(isinstance(v, str) for v in values):
            return AttributeCategory.STRING
        return AttributeCategory.OTHER

    if typing.get_origin(tp) is not None or not isinstance(tp, type):
        return AttributeCategory.OTHER

    if issubclass(tp, str):
        return AttributeCategory.STRING
    if issubclass(tp, bool):
        return AttributeCategory.OTHER
    if issubclass(tp, int):
        return AttributeCategory.INTEGER
    if issubclass(tp, (float, Decimal)):
        return AttributeCategory.FLOAT
    if issubclass(tp, (datetime.date, datetime.time)):
        return AttributeCategory.STRUCT
    if is_record_type(tp):
        return AttributeCategory.REFERENCE
    return AttributeCategory.OTHER


def _annotated_tag(hint: Any) -> str | None:
    if typing.get_origin(hint) is not Annotated:
        return None
    for extra in typing.get_args(hint)[1:]:
        if isinstance(extra, Tag):
            return extra.value
    return None


def _is_classvar(hint: Any) -> bool:
    return hint is ClassVar or typing.get_origin(hint) is ClassVar


def _dataclass_attributes(record_type: type) -> list[RecordAttribute]:
    hints = typing.get_type_hints(record_type, include_extras=True)
    attributes = []
    for f in dataclasses.fields(record_type):
        if f.name.startswith("_"):
            continue
        hint = hints.get(f.name, f.type)
        tag = _annotated_tag(hint)
        if tag is None:
            tag = f.metadata.get(ADMIN_METADATA_KEY, "")
        attributes.append(RecordAttribute(f.name, hint, tag, classify(hint)))
    return attributes


def _pydantic_attributes(record_type: type[BaseModel]) -> list[RecordAttribute]:
    attributes = []
    for name, info in record_type.model_fields.items():
        if name.startswith("_"):
            continue
        tag = next((m.value for m in info.metadata if isinstance(m, Tag)), None)
        if tag is None:
            extra = info.json_schema_extra
            tag = extra.get(ADMIN_METADATA_KEY, "") if isinstance(extra, dict) else ""
        attributes.append(RecordAttribute(name, info.annotation, str(tag), classify(info.annotation)))
    return attributes


def _plain_attributes(record_type: type) -> list[RecordAttribute]:
    hints = typing.get_type_hints(record_type, include_extras=True)
    attributes = []
    for name, hint in hints.items():
        if name.startswith("_") or _is_classvar(hint):
            continue
        attributes.append(RecordAttribute(name, hint, _annotated_tag(hint) or "", classify(hint)))
    return attributes


def iter_attributes(record_type: type) -> list[RecordAttribute]:
    """
    List a record type's attributes in declaration order.

    Private (underscore) and ClassVar attributes are not part of the record.

    Raises:
        NameError: if a string annotation cannot be resolved
    """
    if dataclasses.is_dataclass(record_type):
        return _dataclass_attributes(record_type)
    if issubclass(record_type, BaseModel):
        return _pydantic_attributes(record_type)
    return _plain_attributes(record_type)
