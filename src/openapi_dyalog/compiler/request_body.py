"""Request body resolution.

Picks one supported representation out of an operation's request body and
derives what the endpoint template needs from it: the JSON body model name,
or the multipart form fields. Inline JSON object bodies are promoted into
synthetic models as a side effect.
"""

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict

from openapi_dyalog.parser.base import MediaType, Operation, Schema

from .inline import REQUEST_ITEM_ROLE, REQUEST_ROLE, SyntheticModelTable, promote
from .naming import member_name, unique_name
from .types import map_type, reference_type

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_OCTET_STREAM = "application/octet-stream"
CONTENT_TYPE_MULTIPART_FORM = "multipart/form-data"

SUPPORTED_CONTENT_TYPES = (
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_OCTET_STREAM,
    CONTENT_TYPE_MULTIPART_FORM,
)

BINARY_TYPE = "binary"


class UnsupportedMediaTypeError(ValueError):
    """An operation's request body has no representation the generator understands."""

    def __init__(self, operation_id: str, content_types: list[str]):
        self.operation_id = operation_id
        self.content_types = list(content_types)
        super().__init__(
            f"Unsupported request content type(s) for {operation_id}: "
            f"{', '.join(self.content_types) or '(none)'}"
        )


class FormField(BaseModel):
    """One property of a multipart/form-data request body."""

    model_config = ConfigDict(frozen=True)

    api_name: str
    name: str
    type: str
    is_required: bool = False
    description: str | None = None
    is_array: bool = False
    is_binary: bool = False
    content_type: str | None = None


class ResolvedBody(BaseModel):
    model_config = ConfigDict(frozen=True)

    content_type: str
    body_type: str | None = None
    form_fields: list[FormField] = []


def media_kind(content_type: str) -> str | None:
    """Supported kind of a declared content type, ignoring case and parameters."""
    kind = content_type.split(";", 1)[0].strip().lower()
    return kind if kind in SUPPORTED_CONTENT_TYPES else None


def resolve_request_body(
    operation: Operation,
    operation_id: str,
    table: SyntheticModelTable,
    schemas: Mapping[str, Schema] | None = None,
    class_names: Mapping[str, str] | None = None,
) -> ResolvedBody | None:
    """Resolve an operation's request body.

    The first declared representation of a supported kind wins; unsupported
    ones are skipped. Raises UnsupportedMediaTypeError when none is supported.
    Returns None when the operation declares no request body content.
    When ``schemas`` is given, references to undeclared components count as
    untyped. ``class_names`` maps component names to the class names their
    models are generated under; references resolve through it when given.
    """
    body = operation.request_body
    if body is None or not body.content:
        return None

    known = class_names if class_names is not None else schemas

    for content_type, media in body.content.items():
        kind = media_kind(content_type)
        if kind == CONTENT_TYPE_JSON:
            return ResolvedBody(
                content_type=kind,
                body_type=_resolve_json_body_type(media.schema_, operation_id, table, known),
            )
        if kind == CONTENT_TYPE_OCTET_STREAM:
            return ResolvedBody(content_type=kind)
        if kind == CONTENT_TYPE_MULTIPART_FORM:
            return ResolvedBody(content_type=kind, form_fields=resolve_form_fields(media, schemas, class_names))

    raise UnsupportedMediaTypeError(operation_id, list(body.content))


def _resolve_json_body_type(
    schema: Schema | None,
    operation_id: str,
    table: SyntheticModelTable,
    known: Mapping | None,
) -> str | None:
    if schema is None:
        return None

    if schema.is_reference:
        return reference_type(schema, known)

    items = schema.items
    if schema.type == "array" and items is not None and items.is_reference:
        return reference_type(items, known)

    if schema.type == "object" and schema.properties:
        return promote(operation_id, REQUEST_ROLE, schema, table)

    if schema.type == "array" and items is not None and items.type == "object" and items.properties:
        return promote(operation_id, REQUEST_ITEM_ROLE, items, table)

    return None


def resolve_form_fields(
    media: MediaType,
    schemas: Mapping[str, Schema] | None = None,
    class_names: Mapping[str, str] | None = None,
) -> list[FormField]:
    """One FormField per property of a multipart body schema, in declaration order.

    Field names are unique within the form.
    """
    schema = media.schema_
    if schema is not None and schema.is_reference:
        schema = (schemas or {}).get(schema.ref_name or "")
    if schema is None:
        return []

    known = class_names if class_names is not None else schemas
    fields = []
    taken: set[str] = set()
    for api_name, prop in schema.properties.items():
        name = unique_name(member_name(api_name), taken)
        taken.add(name)
        is_binary = prop.format == "binary"
        encoding = media.encoding.get(api_name)
        fields.append(
            FormField(
                api_name=api_name,
                name=name,
                type=BINARY_TYPE if is_binary else map_type(prop, known),
                is_required=api_name in schema.required,
                description=prop.description,
                is_array=prop.type == "array",
                is_binary=is_binary,
                content_type=encoding.content_type if encoding else None,
            )
        )
    return fields
