"""Declarative record specs loaded from YAML documents."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Final, TypeAlias, cast

import yaml

from resilient_decode import decoders
from resilient_decode.errors import SpecDefinitionError
from resilient_decode.spec import DecodeFn, EncodeFn, FieldSpec, RecordSpec

PathLike: TypeAlias = str | os.PathLike[str]

_SCALAR_DECODERS: Final[dict[str, DecodeFn]] = {
    "string": decoders.string,
    "integer": decoders.integer,
    "number": decoders.number,
    "boolean": decoders.boolean,
    "object": decoders.json_object,
    "any": decoders.any_json,
    "datetime": decoders.iso_datetime,
}
_COMPOSITE_TYPES: Final[frozenset[str]] = frozenset({"array", "enum", "record"})
_ALLOWED_FIELD_KEYS: Final[frozenset[str]] = frozenset(
    {"name", "type", "required", "of", "values", "record", "min", "max"}
)
_ALLOWED_TYPE_KEYS: Final[frozenset[str]] = _ALLOWED_FIELD_KEYS - {"name", "required"}


def load_record_specs(path: PathLike) -> dict[str, RecordSpec]:
    """Load every record declared in a YAML file, keyed by record name."""

    resolved = Path(path)
    try:
        with resolved.open("r", encoding="utf-8") as handle:
            loaded = cast("object", yaml.safe_load(handle))
    except yaml.YAMLError as exc:
        raise SpecDefinitionError(f"{resolved}: invalid YAML ({exc})") from exc
    except OSError as exc:
        raise SpecDefinitionError(f"{resolved}: unable to read spec file ({exc})") from exc
    return parse_record_specs(loaded, source=resolved.name)


def loads_record_specs(text: str) -> dict[str, RecordSpec]:
    """Parse record declarations from YAML text."""

    try:
        loaded = cast("object", yaml.safe_load(text))
    except yaml.YAMLError as exc:
        raise SpecDefinitionError(f"<string>: invalid YAML ({exc})") from exc
    return parse_record_specs(loaded, source="<string>")


def parse_record_specs(document: object, *, source: str = "<document>") -> dict[str, RecordSpec]:
    """Build record specs from an already-parsed ``{"records": {...}}`` mapping.

    Records may reference each other with ``type: record``; references resolve
    regardless of declaration order, and reference cycles are rejected.
    """

    root = _as_mapping(document, source)
    unknown = sorted(set(root) - {"records"})
    if unknown:
        raise SpecDefinitionError(f"{source}: unexpected top-level keys: {unknown}")
    if "records" not in root:
        raise SpecDefinitionError(f"{source}: missing required key 'records'")
    records = _as_mapping(root["records"], f"{source}.records")
    if not records:
        raise SpecDefinitionError(f"{source}.records: must declare at least one record")

    builder = _RecordBuilder(records, source=source)
    return {name: builder.build(name) for name in records}


class _RecordBuilder:
    __slots__ = ("_declarations", "_built", "_in_progress", "_source")

    def __init__(self, declarations: Mapping[str, object], *, source: str) -> None:
        self._declarations = declarations
        self._built: dict[str, RecordSpec] = {}
        self._in_progress: list[str] = []
        self._source = source

    def build(self, name: str) -> RecordSpec:
        existing = self._built.get(name)
        if existing is not None:
            return existing
        location = f"{self._source}.records.{name}"
        if name in self._in_progress:
            chain = " -> ".join([*self._in_progress, name])
            raise SpecDefinitionError(f"{location}: record reference cycle ({chain})")
        if name not in self._declarations:
            raise SpecDefinitionError(f"{location}: unknown record")

        self._in_progress.append(name)
        try:
            declaration = _as_mapping(self._declarations[name], location)
            unknown = sorted(set(declaration) - {"fields"})
            if unknown:
                raise SpecDefinitionError(f"{location}: unexpected keys: {unknown}")
            raw_fields = declaration.get("fields")
            if not isinstance(raw_fields, list):
                raise SpecDefinitionError(f"{location}.fields: expected a list of fields")
            fields = tuple(
                self._build_field(item, f"{location}.fields[{index}]")
                for index, item in enumerate(raw_fields)
            )
            spec = RecordSpec(name=name, fields=fields)
        finally:
            self._in_progress.pop()

        self._built[name] = spec
        return spec

    def _build_field(self, value: object, location: str) -> FieldSpec:
        declaration = _as_mapping(value, location)
        unknown = sorted(set(declaration) - _ALLOWED_FIELD_KEYS)
        if unknown:
            raise SpecDefinitionError(f"{location}: unexpected keys: {unknown}")

        name = declaration.get("name")
        if not isinstance(name, str) or not name.strip():
            raise SpecDefinitionError(f"{location}.name: expected a non-empty string")
        required = declaration.get("required", True)
        if not isinstance(required, bool):
            raise SpecDefinitionError(f"{location}.required: expected boolean")

        decode, encode = self._build_type(declaration, location)
        try:
            return FieldSpec(name=name, required=required, decode=decode, encode=encode)
        except SpecDefinitionError as exc:
            raise SpecDefinitionError(f"{location}: {exc}") from exc

    def _build_type(
        self, declaration: Mapping[str, object], location: str
    ) -> tuple[DecodeFn, EncodeFn | None]:
        type_name = declaration.get("type")
        if not isinstance(type_name, str):
            raise SpecDefinitionError(f"{location}.type: expected string")

        if type_name in _SCALAR_DECODERS:
            decode = _SCALAR_DECODERS[type_name]
            encode = decoders.encode_datetime if type_name == "datetime" else None
        elif type_name == "array":
            item_decode, _ = self._build_type(_item_declaration(declaration, location), location)
            decode = decoders.array_of(item_decode)
            encode = None
        elif type_name == "enum":
            values = declaration.get("values")
            if (
                not isinstance(values, list)
                or not values
                or not all(isinstance(item, str) for item in values)
            ):
                raise SpecDefinitionError(f"{location}.values: expected a list of strings")
            decode = decoders.enum_of(values)
            encode = None
        elif type_name == "record":
            target = declaration.get("record")
            if not isinstance(target, str):
                raise SpecDefinitionError(f"{location}.record: expected record name")
            decode = decoders.record_of(self.build(target))
            encode = None
        else:
            allowed = ", ".join(sorted([*_SCALAR_DECODERS, *_COMPOSITE_TYPES]))
            raise SpecDefinitionError(
                f"{location}.type: unknown type {type_name!r}; expected one of: {allowed}"
            )

        minimum = _as_bound(declaration.get("min"), f"{location}.min")
        maximum = _as_bound(declaration.get("max"), f"{location}.max")
        if minimum is not None or maximum is not None:
            if type_name not in {"integer", "number"}:
                raise SpecDefinitionError(f"{location}: min/max only apply to integer or number")
            decode = decoders.bounded(decode, minimum=minimum, maximum=maximum)
        return decode, encode


def _item_declaration(declaration: Mapping[str, object], location: str) -> Mapping[str, object]:
    item = declaration.get("of")
    if isinstance(item, str):
        return {"type": item}
    if isinstance(item, Mapping):
        unknown = sorted(set(item) - _ALLOWED_TYPE_KEYS)
        if unknown:
            raise SpecDefinitionError(f"{location}.of: unexpected keys: {unknown}")
        return item
    raise SpecDefinitionError(f"{location}.of: expected a type name or type mapping")


def _as_bound(value: object, location: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SpecDefinitionError(f"{location}: expected number")
    return value


def _as_mapping(value: object, location: str) -> dict[str, object]:
    if not isinstance(value, Mapping):
        raise SpecDefinitionError(f"{location}: expected mapping, got {type(value).__name__}")
    parsed: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            raise SpecDefinitionError(f"{location}: keys must be strings")
        parsed[key] = item
    return parsed


__all__ = [
    "load_record_specs",
    "loads_record_specs",
    "parse_record_specs",
]
