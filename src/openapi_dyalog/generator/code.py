"""Code generator: turns an OpenAPI document into a Dyalog APL client on disk."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from openapi_dyalog.compiler.context import (
    CompiledDocument,
    OperationFailure,
    RenderingContext,
    compile_document,
)
from openapi_dyalog.config import GeneratorOptions
from openapi_dyalog.generator.artifacts import ArtifactGenerator
from openapi_dyalog.generator.endpoints import EndpointGenerator
from openapi_dyalog.generator.models import ModelGenerator
from openapi_dyalog.generator.templates import TemplateEngine
from openapi_dyalog.parser.base import Document
from openapi_dyalog.parser.openapi import load_document

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    """Outcome of one generation run."""

    output_directory: Path
    written: list[Path] = field(default_factory=list)
    unchanged: list[Path] = field(default_factory=list)
    failures: list[OperationFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failures

    def add(self, results: list[tuple[Path, bool]]) -> None:
        for relative, written in results:
            (self.written if written else self.unchanged).append(relative)


class CodeGenerator:
    """Generates the client, endpoint functions, models and README for one document."""

    def __init__(self, options: GeneratorOptions, engine: TemplateEngine | None = None):
        self.options = options
        self.engine = engine or TemplateEngine(options.template_path)
        self.endpoints = EndpointGenerator(self.engine)
        self.models = ModelGenerator(self.engine)
        self.artifacts = ArtifactGenerator(self.engine)

    def load(self) -> Document:
        return load_document(
            self.options.specification_file,
            validate=not self.options.disable_validation,
        )

    def compile(self, document: Document, generated_at: datetime | None = None) -> CompiledDocument:
        return compile_document(
            document,
            generated_at=generated_at,
            namespace=self.options.namespace,
            custom=self.options.custom,
        )

    def render(self, context: RenderingContext, output_dir: Path) -> list[tuple[Path, bool]]:
        """Render one context to the file(s) it produces."""
        if context.kind == "operation":
            return [self.endpoints.generate(context, output_dir)]
        if context.kind == "model":
            return [self.models.generate(context, output_dir)]
        return self.artifacts.generate(context, output_dir)

    def generate(self, document: Document | None = None, generated_at: datetime | None = None) -> GenerationReport:
        """Run the full pipeline.

        Loads the document from the configured specification path unless one
        is given. Operations that fail to compile are reported and skipped;
        everything else is still generated.
        """
        copy_source = document is None
        if document is None:
            document = self.load()

        output_dir = self.options.output_path
        compiled = self.compile(document, generated_at)
        report = GenerationReport(output_directory=output_dir, failures=list(compiled.failures))

        report.add(self.endpoints.generate_all(compiled.operations, output_dir))
        report.add(self.models.generate_all(compiled.models, output_dir))
        report.add(self.render(compiled.document, output_dir))
        if copy_source:
            report.add([self.artifacts.copy_specification(self.options.specification_file, output_dir)])

        logger.debug(
            "%d file(s) written, %d unchanged, %d failure(s)",
            len(report.written), len(report.unchanged), len(report.failures),
        )
        return report
