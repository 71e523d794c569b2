"""Maps schema nodes to APL-facing type names."""

from collections.abc import Container, Mapping

from openapi_dyalog.parser.base import Schema

from .naming import model_name

ANY = "any"
ARRAY = "array"

PRIMITIVE_TYPES = {
    "string": "str",
    "integer": "int",
    "number": "number",
    "boolean": "bool",
    "object": "namespace",
}


def reference_type(schema: Schema, known: Container[str] | None = None) -> str | None:
    """Model name a reference resolves to, or None when it is not a usable reference.

    ``known`` is either a mapping of component name to generated class name,
    or any container of component names. A reference with an empty target, a
    target outside the schema components, or (when ``known`` is given) a
    target that is not declared, is unusable.
    """
    name = schema.ref_name
    if not name:
        return None
    if known is not None:
        if name not in known:
            return None
        if isinstance(known, Mapping) and isinstance(known[name], str):
            return known[name]
    return model_name(name)


def map_type(schema: Schema, known: Container[str] | None = None) -> str:
    """Map a schema to its APL type name.

    Pure: it never registers synthetic models.
    """
    if schema.is_reference:
        return reference_type(schema, known) or ANY

    if schema.type is None:
        return ANY

    if schema.type == "array":
        if schema.items is None:
            return ARRAY
        return f"{ARRAY}[{map_type(schema.items, known)}]"

    return PRIMITIVE_TYPES.get(schema.type, ANY)
