"""OpenAPI / Swagger document loader.

Parses OpenAPI 3.x (and, best effort, Swagger 2.0) YAML or JSON files into
the ``Document`` model. Only structural checks are made here; semantic
validation of the description is out of scope.
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from .base import (
    Components,
    Document,
    Encoding,
    Info,
    MediaType,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Response,
    Schema,
    SecurityScheme,
    Server,
)
from .detect import detect_format

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

MAX_REF_DEPTH = 32


class SpecificationError(Exception):
    """Raised when a specification file cannot be loaded."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


def load_document(file_path: Path, validate: bool = True) -> Document:
    """Load an OpenAPI/Swagger file into a Document."""
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SpecificationError(f"Cannot read specification {file_path}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SpecificationError(f"Error parsing OpenAPI document: {e}") from e

    return parse_document(data, validate=validate)


def parse_document(data: object, validate: bool = True) -> Document:
    """Convert an already-loaded mapping into a Document."""
    if not isinstance(data, dict):
        raise SpecificationError("Specification must be a mapping at the top level.")

    fmt = detect_format(data)
    if validate:
        errors = _structural_errors(data, fmt)
        if errors:
            raise SpecificationError("Specification failed validation.", errors)

    try:
        if fmt == "swagger2":
            return _parse_swagger2(data)
        return _parse_openapi3(data)
    except ValidationError as e:
        raise SpecificationError(
            "Specification has values of an unexpected type.",
            [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()],
        ) from e


def _structural_errors(data: dict, fmt: str | None) -> list[str]:
    errors = []
    if fmt is None:
        errors.append("#/: missing or unsupported 'openapi'/'swagger' version field")
    if not isinstance(data.get("info"), dict):
        errors.append("#/info: an info object is required")
    paths = data.get("paths")
    if paths is None and fmt != "openapi3":
        errors.append("#/paths: a paths object is required")
    elif paths is not None and not isinstance(paths, dict):
        errors.append("#/paths: must be a mapping")
    return errors


# -- OpenAPI 3.x ----------------------------------------------------------


def _parse_openapi3(data: dict) -> Document:
    components = data.get("components") or {}
    return Document(
        openapi=str(data.get("openapi", "3.0.0")),
        info=_parse_info(data.get("info")),
        servers=[
            Server(url=str(s.get("url", "")), description=_text(s.get("description")))
            for s in data.get("servers") or []
            if isinstance(s, dict)
        ],
        paths=_parse_paths(data, data.get("paths") or {}, _parse_openapi3_operation),
        components=Components(
            schemas={
                str(name): _parse_schema(node)
                for name, node in (components.get("schemas") or {}).items()
            },
            security_schemes=_parse_security_schemes(components.get("securitySchemes") or {}),
        ),
        security=data.get("security"),
    )


def _parse_openapi3_operation(doc: dict, node: dict, shared_params: list) -> Operation:
    return Operation(
        operation_id=_text(node.get("operationId")),
        summary=_text(node.get("summary")),
        description=_text(node.get("description")),
        tags=[str(t) for t in node.get("tags") or []],
        parameters=_merge_parameters(doc, shared_params, node.get("parameters") or []),
        request_body=_parse_request_body(doc, node.get("requestBody")),
        responses=_parse_responses(doc, node.get("responses") or {}),
        deprecated=bool(node.get("deprecated", False)),
        security=node.get("security"),
    )


def _parse_request_body(doc: dict, body: dict | None) -> RequestBody | None:
    body = _deref(doc, body)
    if not body:
        return None
    return RequestBody(
        description=_text(body.get("description")),
        required=bool(body.get("required", False)),
        content=_parse_content(body.get("content") or {}),
    )


def _parse_content(content: dict) -> dict[str, MediaType]:
    result = {}
    for content_type, media in content.items():
        media = media or {}
        schema = media.get("schema")
        result[str(content_type)] = MediaType(
            schema_=_parse_schema(schema) if schema is not None else None,
            encoding={
                name: Encoding(content_type=_text((enc or {}).get("contentType")))
                for name, enc in (media.get("encoding") or {}).items()
            },
        )
    return result


def _parse_responses(doc: dict, responses: dict) -> dict[str, Response]:
    result = {}
    for status_code, resp in responses.items():
        resp = _deref(doc, resp) or {}
        result[str(status_code)] = Response(
            description=_text(resp.get("description")) or "",
            content=_parse_content(resp.get("content") or {}),
        )
    return result


# -- Swagger 2.0 ----------------------------------------------------------


def _parse_swagger2(data: dict) -> Document:
    servers = []
    host = data.get("host")
    if host:
        scheme = (data.get("schemes") or ["https"])[0]
        servers.append(Server(url=f"{scheme}://{host}{data.get('basePath', '')}"))

    return Document(
        openapi=str(data.get("swagger", "2.0")),
        info=_parse_info(data.get("info")),
        servers=servers,
        paths=_parse_paths(data, data.get("paths") or {}, _parse_swagger2_operation),
        components=Components(
            schemas={
                str(name): _parse_schema(node)
                for name, node in (data.get("definitions") or {}).items()
            },
            security_schemes=_parse_security_schemes(data.get("securityDefinitions") or {}),
        ),
        security=data.get("security"),
    )


def _parse_swagger2_operation(doc: dict, node: dict, shared_params: list) -> Operation:
    consumes = [str(ct) for ct in node.get("consumes") or doc.get("consumes") or ["application/json"]]
    raw_params = _merge_raw_parameters(doc, shared_params, node.get("parameters") or [])

    body_params = [p for p in raw_params if p.get("in") == "body"]
    form_params = [p for p in raw_params if p.get("in") == "formData"]
    other_params = [p for p in raw_params if p.get("in") not in ("body", "formData")]

    request_body = None
    if body_params:
        schema = _parse_schema(body_params[0].get("schema") or {})
        request_body = RequestBody(
            description=_text(body_params[0].get("description")),
            required=bool(body_params[0].get("required", False)),
            content={ct: MediaType(schema_=schema) for ct in consumes},
        )
    elif form_params:
        form_schema = Schema(
            type="object",
            properties={str(p["name"]): _swagger2_param_schema(p) for p in form_params},
            required=[str(p["name"]) for p in form_params if p.get("required")],
        )
        form_types = [ct for ct in consumes if ct.startswith(("multipart/", "application/x-www-form"))]
        request_body = RequestBody(
            content={ct: MediaType(schema_=form_schema) for ct in form_types or ["multipart/form-data"]},
        )

    responses = {}
    for status_code, resp in (node.get("responses") or {}).items():
        resp = _deref(doc, resp) or {}
        content = {}
        if resp.get("schema") is not None:
            produces = [str(ct) for ct in node.get("produces") or doc.get("produces") or ["application/json"]]
            content = {ct: MediaType(schema_=_parse_schema(resp["schema"])) for ct in produces}
        responses[str(status_code)] = Response(description=_text(resp.get("description")) or "", content=content)

    return Operation(
        operation_id=_text(node.get("operationId")),
        summary=_text(node.get("summary")),
        description=_text(node.get("description")),
        tags=[str(t) for t in node.get("tags") or []],
        parameters=[_parse_parameter(p, _swagger2_param_schema(p)) for p in other_params],
        request_body=request_body,
        responses=responses,
        deprecated=bool(node.get("deprecated", False)),
        security=node.get("security"),
    )


def _swagger2_param_schema(param: dict) -> Schema:
    if param.get("type") == "file":
        return Schema(type="string", format="binary", description=_text(param.get("description")))
    node = {k: v for k, v in param.items() if k in ("type", "format", "items", "enum")}
    schema = _parse_schema(node)
    if param.get("description"):
        schema = schema.model_copy(update={"description": str(param["description"])})
    return schema


# -- shared helpers -------------------------------------------------------


def _text(value: object) -> str | None:
    """YAML scalars such as ``operationId: 123`` load as numbers; the model wants text."""
    return str(value) if value is not None else None


def _parse_info(info: dict | None) -> Info:
    info = info if isinstance(info, dict) else {}
    return Info(
        title=_text(info.get("title")),
        version=_text(info.get("version")),
        description=_text(info.get("description")),
    )


def _parse_paths(doc: dict, paths: dict, parse_operation) -> dict[str, PathItem]:
    result = {}
    for path, item in paths.items():
        item = _deref(doc, item)
        if not isinstance(item, dict):
            item = {}
        shared_params = item.get("parameters") or []
        operations = {}
        for method, node in item.items():
            method = str(method).lower()
            if method not in HTTP_METHODS or not isinstance(node, dict):
                continue
            operations[method] = parse_operation(doc, node, shared_params)
        result[str(path)] = PathItem(operations=operations)
    return result


def _merge_raw_parameters(doc: dict, shared: list, own: list) -> list[dict]:
    """Path-level parameters first; an operation parameter with the same (name, in) replaces one."""
    merged: dict[tuple, dict] = {}
    for raw in list(shared) + list(own):
        param = _deref(doc, raw)
        if not isinstance(param, dict) or "name" not in param:
            continue
        merged[(param["name"], param.get("in", "query"))] = param
    return list(merged.values())


def _merge_parameters(doc: dict, shared: list, own: list) -> list[Parameter]:
    result = []
    for p in _merge_raw_parameters(doc, shared, own):
        schema = p.get("schema")
        result.append(_parse_parameter(p, _parse_schema(schema) if schema is not None else None))
    return result


def _parse_parameter(param: dict, schema: Schema | None) -> Parameter:
    location = str(param.get("in", "query"))
    return Parameter(
        name=str(param["name"]),
        location=location,
        required=bool(param.get("required", location == "path")),
        description=_text(param.get("description")),
        schema_=schema,
        deprecated=bool(param.get("deprecated", False)),
    )


def _parse_schema(node: object) -> Schema:
    if not isinstance(node, dict):
        return Schema()

    if "$ref" in node:
        return Schema(ref=str(node["$ref"] or ""), description=_text(node.get("description")))

    # allOf with a single member is the usual way to attach a description to a $ref
    all_of = node.get("allOf")
    if isinstance(all_of, list) and len(all_of) == 1 and isinstance(all_of[0], dict) and "$ref" in all_of[0]:
        return Schema(ref=str(all_of[0]["$ref"] or ""), description=_text(node.get("description")))

    schema_type = node.get("type")
    nullable = bool(node.get("nullable", False))
    if isinstance(schema_type, list):
        non_null = [t for t in schema_type if t != "null"]
        nullable = nullable or len(non_null) != len(schema_type)
        schema_type = non_null[0] if non_null else None
    if schema_type is None and "properties" in node:
        schema_type = "object"

    items = node.get("items")
    required = node.get("required")
    enum = node.get("enum")
    return Schema(
        type=_text(schema_type),
        format=_text(node.get("format")),
        description=_text(node.get("description")),
        properties={
            str(name): _parse_schema(prop)
            for name, prop in (node.get("properties") or {}).items()
        },
        required=[str(r) for r in required] if isinstance(required, list) else [],
        items=_parse_schema(items) if items is not None else None,
        enum=enum if isinstance(enum, list) else None,
        nullable=nullable,
    )


def _parse_security_schemes(schemes: dict) -> dict[str, SecurityScheme]:
    result = {}
    for name, node in schemes.items():
        if not isinstance(node, dict):
            continue
        result[str(name)] = SecurityScheme(
            type=str(node.get("type", "")),
            description=_text(node.get("description")),
            name=_text(node.get("name")),
            location=_text(node.get("in")),
            scheme=_text(node.get("scheme")),
            bearer_format=_text(node.get("bearerFormat")),
        )
    return result


def _deref(doc: dict, node: object, depth: int = 0) -> object:
    """Follow local ``$ref`` pointers for non-schema objects (parameters, bodies, responses)."""
    if not isinstance(node, dict) or "$ref" not in node:
        return node
    if depth >= MAX_REF_DEPTH:
        logger.warning("Reference chain too deep at %s", node["$ref"])
        return None

    ref = str(node["$ref"])
    if not ref.startswith("#/"):
        logger.warning("External reference not supported: %s", ref)
        return None

    target: object = doc
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(target, dict) or part not in target:
            logger.warning("Unresolvable reference: %s", ref)
            return None
        target = target[part]
    return _deref(doc, target, depth + 1)
