"""Data models for a parsed API description.

The loader in ``openapi.py`` converts OpenAPI 3.x (and, best effort,
Swagger 2.0) documents into these models. The compiler only ever reads them.
"""

from pydantic import BaseModel, ConfigDict, Field

SCHEMA_REF_PREFIXES = ("#/components/schemas/", "#/definitions/")


class Schema(BaseModel):
    """A schema node. ``ref`` holds the raw ``$ref`` string when the node is a reference."""

    ref: str | None = None
    type: str | None = None
    format: str | None = None
    description: str | None = None
    properties: dict[str, "Schema"] = {}
    required: list[str] = []
    items: "Schema | None" = None
    enum: list | None = None
    nullable: bool = False

    @property
    def is_reference(self) -> bool:
        return self.ref is not None

    @property
    def ref_name(self) -> str | None:
        """Component name a reference points at.

        ``None`` when the node is not a reference, ``""`` when the reference
        is empty or does not point into the shared schema components.
        """
        if self.ref is None:
            return None
        for prefix in SCHEMA_REF_PREFIXES:
            if self.ref.startswith(prefix):
                return self.ref[len(prefix):]
        return ""


Schema.model_rebuild()


class Parameter(BaseModel):
    """A single operation parameter (query, path, header, or cookie)."""

    name: str
    location: str  # query / path / header / cookie
    required: bool = False
    description: str | None = None
    schema_: Schema | None = None
    deprecated: bool = False


class Encoding(BaseModel):
    content_type: str | None = None


class MediaType(BaseModel):
    schema_: Schema | None = None
    encoding: dict[str, Encoding] = {}


class RequestBody(BaseModel):
    description: str | None = None
    required: bool = False
    content: dict[str, MediaType] = {}  # content type -> media type, declaration order


class Response(BaseModel):
    description: str = ""
    content: dict[str, MediaType] = {}


class Operation(BaseModel):
    """One operation as declared under a path item."""

    operation_id: str | None = None
    summary: str | None = None
    description: str | None = None
    tags: list[str] = []
    parameters: list[Parameter] = []
    request_body: RequestBody | None = None
    responses: dict[str, Response] = {}
    deprecated: bool = False
    # None: not declared, inherit the document default. []: explicitly unauthenticated.
    security: list[dict[str, list[str]]] | None = None


class PathItem(BaseModel):
    operations: dict[str, Operation] = {}  # lower-case method -> operation, document order


class Info(BaseModel):
    title: str | None = None
    version: str | None = None
    description: str | None = None


class Server(BaseModel):
    url: str
    description: str | None = None


class SecurityScheme(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    description: str | None = None
    name: str | None = None
    location: str | None = None
    scheme: str | None = None
    bearer_format: str | None = None


class Components(BaseModel):
    schemas: dict[str, Schema] = {}
    security_schemes: dict[str, SecurityScheme] = {}


class Document(BaseModel):
    """A whole API description."""

    openapi: str = "3.0.0"
    info: Info = Field(default_factory=Info)
    servers: list[Server] = []
    paths: dict[str, PathItem] = {}
    components: Components = Field(default_factory=Components)
    security: list[dict[str, list[str]]] | None = None
