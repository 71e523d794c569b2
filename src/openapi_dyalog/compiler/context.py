"""
Rendering contexts and the functions that assemble them.

Three context variants exist, told apart by their ``kind`` field:

- ``DocumentContext`` for whole-document artifacts (client, utils, version, README)
- ``OperationContext`` for one endpoint function
- ``ModelContext`` for one model class

Every derived value (security scheme names, parameters by location, tag
names) is computed once here and stored as a plain field. Contexts are frozen
once built.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from openapi_dyalog.parser.base import (
    Document,
    Operation,
    PathItem,
    Schema,
    SecurityScheme,
    Server,
)

from .grouping import group_operations
from .inline import SyntheticModelTable
from .naming import member_name, model_name, pascal_case, sanitize, unique_name
from .paths import compile_path
from .request_body import FormField, ResolvedBody, UnsupportedMediaTypeError, resolve_request_body
from .types import ANY, map_type, reference_type

logger = logging.getLogger(__name__)

CustomValue = Union[str, int, float, bool]

DEFAULT_TITLE = "API"
DEFAULT_VERSION = "1.0.0"


class _Context(BaseModel):
    model_config = ConfigDict(frozen=True)

    custom: dict[str, CustomValue] = {}


class ParameterInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_name: str
    name: str
    location: str
    type: str
    required: bool = False
    description: str | None = None
    deprecated: bool = False


class ResponseInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    status_code: str
    description: str = ""
    content_types: list[str] = []
    body_type: str | None = None


class ModelProperty(BaseModel):
    """A property of a model, as seen by the model template."""

    model_config = ConfigDict(frozen=True)

    api_name: str
    name: str
    type: str = ANY
    is_required: bool = False
    description: str | None = None
    is_reference: bool = False
    reference_type: str | None = None
    is_array: bool = False


class OperationSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    operation_id: str
    method: str
    path: str
    summary: str | None = None
    description: str | None = None
    has_request_body: bool = False


class OperationContext(_Context):
    kind: Literal["operation"] = "operation"

    operation_id: str
    raw_operation_id: str
    method: str
    path: str
    dyalog_path: str
    tag: str
    tag_name: str
    summary: str | None = None
    description: str | None = None
    tags: list[str] = []
    parameters: list[ParameterInfo] = []
    path_parameters: list[ParameterInfo] = []
    query_parameters: list[ParameterInfo] = []
    header_parameters: list[ParameterInfo] = []
    cookie_parameters: list[ParameterInfo] = []
    has_request_body: bool = False
    request_body_required: bool = False
    request_body_description: str | None = None
    request_content_type: str | None = None
    request_json_body_type: str | None = None
    form_fields: list[FormField] = []
    responses: dict[str, ResponseInfo] = {}
    deprecated: bool = False
    # Alternatives are OR-related; the schemes inside one requirement are AND-related.
    security: list[dict[str, list[str]]] = []
    security_scheme_names: list[str] = []
    has_security: bool = False
    allows_anonymous: bool = False


class ModelContext(_Context):
    kind: Literal["model"] = "model"

    class_name: str
    api_name: str
    type: str = ANY
    description: str | None = None
    properties: list[ModelProperty] = []
    enum: list | None = None
    synthetic: bool = False


class DocumentContext(_Context):
    kind: Literal["document"] = "document"

    title: str = DEFAULT_TITLE
    version: str = DEFAULT_VERSION
    description: str | None = None
    base_url: str | None = None
    servers: list[Server] = []
    schemas: dict[str, Schema] = {}
    paths: dict[str, PathItem] = {}
    security_schemes: dict[str, SecurityScheme] = {}
    tags: list[str] = []
    operations_by_tag: dict[str, list[OperationSummary]] = {}
    model_names: list[str] = []
    namespace: str | None = None
    generated_at: datetime


RenderingContext = Annotated[
    Union[DocumentContext, OperationContext, ModelContext],
    Field(discriminator="kind"),
]


# -- naming ---------------------------------------------------------------


def synthesize_operation_id(method: str, path: str) -> str:
    """Fallback id for operations without an operationId: ``get_/pets/{id}`` -> ``get__pets_id``."""
    return f"{method}_{path.replace('/', '_').replace('{', '').replace('}', '')}"


def normalize_operation_id(raw: str) -> str:
    return sanitize(pascal_case(raw.replace("/", "_")))


def effective_security(operation: Operation, document: Document) -> list[dict[str, list[str]]]:
    """Security requirements that apply to an operation.

    An operation that declares nothing inherits the document default; an
    explicitly empty list means no authentication regardless of the default.
    """
    if operation.security is not None:
        return [dict(req) for req in operation.security]
    return [dict(req) for req in document.security or []]


def security_scheme_names(security: list[dict[str, list[str]]]) -> list[str]:
    """Unique scheme names across all requirements, in first-appearance order."""
    names: list[str] = []
    for requirement in security:
        for name in requirement:
            if name and name not in names:
                names.append(name)
    return names


# -- assemblers -----------------------------------------------------------


def build_operation_context(
    path: str,
    method: str,
    operation: Operation,
    document: Document,
    operation_id: str,
    tag: str,
    tag_name: str,
    body: ResolvedBody | None = None,
    custom: dict[str, CustomValue] | None = None,
    class_names: dict[str, str] | None = None,
) -> OperationContext:
    """Assemble the context for one endpoint.

    ``class_names`` maps component names to model class names and defaults to
    the names component_model_names assigns.
    """
    known = class_names if class_names is not None else component_model_names(document)
    parameters = [
        ParameterInfo(
            api_name=p.name,
            name=sanitize(p.name),
            location=p.location,
            type=map_type(p.schema_, known) if p.schema_ is not None else ANY,
            required=p.required,
            description=p.description,
            deprecated=p.deprecated,
        )
        for p in operation.parameters
    ]

    responses = {}
    for status_code, response in operation.responses.items():
        body_type = None
        for media in response.content.values():
            if media.schema_ is not None:
                body_type = map_type(media.schema_, known)
                break
        responses[status_code] = ResponseInfo(
            status_code=status_code,
            description=response.description,
            content_types=list(response.content),
            body_type=body_type,
        )

    security = effective_security(operation, document)
    request_body = operation.request_body

    return OperationContext(
        operation_id=operation_id,
        raw_operation_id=operation.operation_id or synthesize_operation_id(method, path),
        method=method,
        path=path,
        dyalog_path=compile_path(path),
        tag=tag,
        tag_name=tag_name,
        summary=operation.summary,
        description=operation.description,
        tags=list(operation.tags),
        parameters=parameters,
        path_parameters=[p for p in parameters if p.location == "path"],
        query_parameters=[p for p in parameters if p.location == "query"],
        header_parameters=[p for p in parameters if p.location == "header"],
        cookie_parameters=[p for p in parameters if p.location == "cookie"],
        has_request_body=body is not None,
        request_body_required=bool(request_body and request_body.required),
        request_body_description=request_body.description if request_body else None,
        request_content_type=body.content_type if body else None,
        request_json_body_type=body.body_type if body else None,
        form_fields=list(body.form_fields) if body else [],
        responses=responses,
        deprecated=operation.deprecated,
        security=security,
        security_scheme_names=security_scheme_names(security),
        has_security=bool(security),
        allows_anonymous=any(not req for req in security),
        custom=dict(custom or {}),
    )


def build_model_properties(schema: Schema, known=None) -> list[ModelProperty]:
    properties = []
    taken: set[str] = set()
    for api_name, prop in schema.properties.items():
        name = unique_name(member_name(api_name), taken)
        taken.add(name)
        ref_type = None
        if prop.is_reference:
            ref_type = reference_type(prop, known)
        elif prop.type == "array" and prop.items is not None and prop.items.is_reference:
            ref_type = reference_type(prop.items, known)

        properties.append(
            ModelProperty(
                api_name=api_name,
                name=name,
                type=map_type(prop, known),
                is_required=api_name in schema.required,
                description=prop.description,
                is_reference=ref_type is not None,
                reference_type=ref_type,
                is_array=prop.type == "array",
            )
        )
    return properties


def build_model_context(
    class_name: str,
    api_name: str,
    schema: Schema,
    known=None,
    synthetic: bool = False,
    source_info: str | None = None,
    custom: dict[str, CustomValue] | None = None,
) -> ModelContext:
    """Assemble the context for one model class."""
    return ModelContext(
        class_name=class_name,
        api_name=api_name,
        type=map_type(schema, known),
        description=schema.description or source_info,
        properties=build_model_properties(schema, known),
        enum=list(schema.enum) if schema.enum is not None else None,
        synthetic=synthetic,
        custom=dict(custom or {}),
    )


def build_document_context(
    document: Document,
    generated_at: datetime | None = None,
    namespace: str | None = None,
    operations: dict[str, list[OperationContext]] | None = None,
    tag_names: dict[str, str] | None = None,
    model_names: list[str] | None = None,
    custom: dict[str, CustomValue] | None = None,
) -> DocumentContext:
    """Assemble the context for whole-document artifacts."""
    operations = operations or {}
    tag_names = tag_names or {}

    operations_by_tag = {
        tag_names.get(tag, member_name(tag)): [
            OperationSummary(
                operation_id=ctx.operation_id,
                method=ctx.method.upper(),
                path=ctx.path,
                summary=ctx.summary,
                description=ctx.description,
                has_request_body=ctx.has_request_body,
            )
            for ctx in contexts
        ]
        for tag, contexts in operations.items()
    }

    info = document.info
    return DocumentContext(
        title=info.title or DEFAULT_TITLE,
        version=info.version or DEFAULT_VERSION,
        description=info.description,
        base_url=document.servers[0].url if document.servers else None,
        servers=list(document.servers),
        schemas=dict(document.components.schemas),
        paths=dict(document.paths),
        security_schemes=dict(document.components.security_schemes),
        tags=list(operations_by_tag),
        operations_by_tag=operations_by_tag,
        model_names=list(model_names or []),
        namespace=namespace,
        generated_at=generated_at or datetime.now(timezone.utc),
        custom=dict(custom or {}),
    )


# -- whole run ------------------------------------------------------------


@dataclass
class OperationFailure:
    tag: str
    path: str
    method: str
    operation_id: str
    error: UnsupportedMediaTypeError


@dataclass
class CompiledDocument:
    """Everything one run hands to the renderer."""

    document: DocumentContext
    operations: dict[str, list[OperationContext]] = field(default_factory=dict)
    tag_names: dict[str, str] = field(default_factory=dict)
    models: list[ModelContext] = field(default_factory=list)
    failures: list[OperationFailure] = field(default_factory=list)


def component_model_names(document: Document) -> dict[str, str]:
    """Component schema name -> unique model class name."""
    names: dict[str, str] = {}
    for api_name in document.components.schemas:
        names[api_name] = unique_name(model_name(api_name), set(names.values()))
    return names


def compile_document(
    document: Document,
    generated_at: datetime | None = None,
    namespace: str | None = None,
    custom: dict[str, CustomValue] | None = None,
) -> CompiledDocument:
    """Compile a parsed document into rendering contexts.

    Operations whose request body cannot be resolved are reported in
    ``failures`` and left out of ``operations``; the rest of the document
    still compiles.
    """
    generated_at = generated_at or datetime.now(timezone.utc)
    schemas = document.components.schemas
    class_names = component_model_names(document)
    table = SyntheticModelTable(reserved=class_names.values())

    operations: dict[str, list[OperationContext]] = {}
    tag_names: dict[str, str] = {}
    failures: list[OperationFailure] = []

    for tag, entries in group_operations(document).items():
        tag_name = unique_name(member_name(tag), set(tag_names.values()))
        tag_names[tag] = tag_name
        taken: set[str] = set()
        contexts = []

        for path, method, operation in entries:
            raw_id = operation.operation_id or synthesize_operation_id(method, path)
            operation_id = unique_name(normalize_operation_id(raw_id), taken)
            taken.add(operation_id)

            try:
                body = resolve_request_body(operation, operation_id, table, schemas, class_names)
            except UnsupportedMediaTypeError as e:
                logger.warning("Skipping %s %s: %s", method.upper(), path, e)
                failures.append(OperationFailure(tag, path, method, operation_id, e))
                continue

            contexts.append(
                build_operation_context(
                    path, method, operation, document, operation_id, tag, tag_name, body, custom,
                    class_names,
                )
            )

        operations[tag] = contexts

    models = [
        build_model_context(class_names[api_name], api_name, schema, class_names, custom=custom)
        for api_name, schema in schemas.items()
    ]
    for name, schema in table.drain():
        models.append(
            build_model_context(
                name, name, schema, class_names, synthetic=True,
                source_info=f"Inline request body model ({name})", custom=custom,
            )
        )

    return CompiledDocument(
        document=build_document_context(
            document,
            generated_at=generated_at,
            namespace=namespace,
            operations=operations,
            tag_names=tag_names,
            model_names=[m.class_name for m in models],
            custom=custom,
        ),
        operations=operations,
        tag_names=tag_names,
        models=models,
        failures=failures,
    )
