"""
Field types and schemas for JSON-derived tables.

A field type is either a primitive ``JsonType`` member, an ``ArrayType``
or a ``StructType``. ``merge_types`` unifies two observed types into the
narrowest type able to hold both.
"""

import json
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Tuple, Union

from httpjson.ingest.errors import DuplicateColumnError


class JsonType(str, Enum):
    """Primitive column types."""
    NULL = "null"
    BOOLEAN = "boolean"
    LONG = "long"
    DOUBLE = "double"
    STRING = "string"


# Accepted spellings when reading a declared schema
_TYPE_ALIASES = {
    "null": JsonType.NULL,
    "void": JsonType.NULL,
    "boolean": JsonType.BOOLEAN,
    "bool": JsonType.BOOLEAN,
    "long": JsonType.LONG,
    "bigint": JsonType.LONG,
    "integer": JsonType.LONG,
    "int": JsonType.LONG,
    "double": JsonType.DOUBLE,
    "float": JsonType.DOUBLE,
    "string": JsonType.STRING,
}


@dataclass(frozen=True)
class ArrayType:
    """Homogeneous array; ``element_type`` is the merge of every element."""
    element_type: "FieldType"


@dataclass(frozen=True)
class StructField:
    """A named, typed column."""
    name: str
    data_type: "FieldType"
    nullable: bool = True


class StructType:
    """
    Ordered collection of fields.

    Equality ignores field order: two struct types are equal when they
    declare the same names with the same types and nullability. Order is
    kept for row layout and serialization.
    """

    def __init__(self, fields: Iterable[StructField] = ()):
        self.fields: Tuple[StructField, ...] = tuple(fields)

    @property
    def names(self) -> List[str]:
        return [f.name for f in self.fields]

    def field_index(self, name: str) -> int:
        for idx, f in enumerate(self.fields):
            if f.name == name:
                return idx
        raise KeyError(name)

    def add(self, name: str, data_type: "FieldType", nullable: bool = True) -> "StructType":
        """Return a new struct with one more field appended."""
        return StructType(self.fields + (StructField(name, data_type, nullable),))

    def __iter__(self) -> Iterator[StructField]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __getitem__(self, key: Union[int, str]) -> StructField:
        if isinstance(key, str):
            return self.fields[self.field_index(key)]
        return self.fields[key]

    def __contains__(self, name: object) -> bool:
        return any(f.name == name for f in self.fields)

    def _as_mapping(self) -> Dict[str, Tuple["FieldType", bool]]:
        return {f.name: (f.data_type, f.nullable) for f in self.fields}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StructType):
            return NotImplemented
        return self._as_mapping() == other._as_mapping()

    def __hash__(self) -> int:
        return hash(frozenset(self._as_mapping().items()))

    def __repr__(self) -> str:
        return f"StructType({list(self.fields)!r})"

    def __str__(self) -> str:
        return type_string(self)

    def to_json(self) -> str:
        """Serialize to a stable JSON text (field order preserved)."""
        return json.dumps(type_to_dict(self), separators=(",", ":"))

    @classmethod
    def from_json(cls, value: Union[str, Dict[str, Any]]) -> "StructType":
        """Build a struct type from ``to_json`` output or its parsed dict."""
        if isinstance(value, str):
            value = json.loads(value)
        parsed = type_from_dict(value)
        if not isinstance(parsed, StructType):
            raise ValueError(f"Schema must be a struct, got {type_string(parsed)}")
        return parsed


FieldType = Union[JsonType, ArrayType, StructType]

_NUMERIC = frozenset({JsonType.LONG, JsonType.DOUBLE})


def merge_types(left: FieldType, right: FieldType) -> FieldType:
    """
    Merge two observed types into one that can represent both.

    NULL is the identity, LONG and DOUBLE widen to DOUBLE, arrays merge
    their element types, structs merge field-wise. Any other pair widens
    to STRING.
    """
    if left is JsonType.NULL:
        return right
    if right is JsonType.NULL:
        return left

    if isinstance(left, StructType) and isinstance(right, StructType):
        return _merge_structs(left, right)
    if isinstance(left, ArrayType) and isinstance(right, ArrayType):
        return ArrayType(merge_types(left.element_type, right.element_type))

    if left == right:
        return left
    if left in _NUMERIC and right in _NUMERIC:
        return JsonType.DOUBLE

    return JsonType.STRING


def _merge_structs(left: StructType, right: StructType) -> StructType:
    merged: Dict[str, StructField] = {}
    right_names = set(right.names)

    for f in left.fields:
        # Missing on the right side
        merged[f.name] = f if f.name in right_names else StructField(f.name, f.data_type, True)

    for f in right.fields:
        existing = merged.get(f.name)
        if existing is None:
            merged[f.name] = StructField(f.name, f.data_type, True)
        else:
            merged[f.name] = StructField(
                f.name,
                merge_types(existing.data_type, f.data_type),
                existing.nullable or f.nullable,
            )

    return StructType(merged.values())


def validate_unique_names(schema: StructType, parent_path: str = "") -> None:
    """
    Reject a schema that declares any name twice.

    Nested structs (also inside arrays) are checked as well; their
    offending names are reported as dotted paths.

    Raises:
        DuplicateColumnError: With every offending name
    """
    duplicates = _find_duplicates(schema, parent_path)
    if duplicates:
        raise DuplicateColumnError(duplicates)


def _find_duplicates(schema: StructType, parent_path: str) -> List[str]:
    counts = Counter(schema.names)
    found = [
        f"{parent_path}.{name}" if parent_path else name
        for name, count in counts.items()
        if count > 1
    ]
    for f in schema.fields:
        path = f"{parent_path}.{f.name}" if parent_path else f.name
        nested = f.data_type
        while isinstance(nested, ArrayType):
            nested = nested.element_type
        if isinstance(nested, StructType):
            found.extend(_find_duplicates(nested, path))
    return found


def type_string(data_type: FieldType) -> str:
    """Compact rendering, e.g. ``struct<a:long,b:array<string>>``."""
    if isinstance(data_type, StructType):
        inner = ",".join(f"{f.name}:{type_string(f.data_type)}" for f in data_type.fields)
        return f"struct<{inner}>"
    if isinstance(data_type, ArrayType):
        return f"array<{type_string(data_type.element_type)}>"
    return data_type.value


def type_to_dict(data_type: FieldType) -> Any:
    if isinstance(data_type, StructType):
        return {
            "type": "struct",
            "fields": [
                {"name": f.name, "type": type_to_dict(f.data_type), "nullable": f.nullable}
                for f in data_type.fields
            ],
        }
    if isinstance(data_type, ArrayType):
        return {"type": "array", "elementType": type_to_dict(data_type.element_type)}
    return data_type.value


def type_from_dict(value: Any) -> FieldType:
    if isinstance(value, str):
        try:
            return _TYPE_ALIASES[value.lower()]
        except KeyError:
            raise ValueError(f"Unknown field type: {value!r}")

    if not isinstance(value, dict):
        raise ValueError(f"Cannot read a field type from {value!r}")

    kind = value.get("type")
    if kind == "array":
        return ArrayType(type_from_dict(value["elementType"]))
    if kind == "struct":
        return StructType(
            StructField(
                name=f["name"],
                data_type=type_from_dict(f["type"]),
                nullable=bool(f.get("nullable", True)),
            )
            for f in value.get("fields", [])
        )
    raise ValueError(f"Unknown field type: {kind!r}")
