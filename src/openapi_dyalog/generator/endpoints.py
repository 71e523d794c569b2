"""Endpoint generator: one APL function file per operation."""

import logging
from pathlib import Path

from openapi_dyalog.compiler.context import OperationContext
from openapi_dyalog.constants import APL_SOURCE_DIR, ENDPOINT_TEMPLATE, TAGS_SUBDIR
from openapi_dyalog.generator.templates import TemplateEngine, save_output

logger = logging.getLogger(__name__)


class EndpointGenerator:
    """Renders operation contexts into ``APLSource/_tags/<tag>/<OperationId>.aplf``."""

    def __init__(self, engine: TemplateEngine):
        self.engine = engine

    def relative_path(self, context: OperationContext) -> Path:
        return Path(APL_SOURCE_DIR) / TAGS_SUBDIR / context.tag_name / f"{context.operation_id}.aplf"

    def generate(self, context: OperationContext, output_dir: Path) -> tuple[Path, bool]:
        """Render and save one endpoint.

        Returns the path relative to ``output_dir`` and whether it was written.
        """
        relative = self.relative_path(context)
        content = self.engine.render(ENDPOINT_TEMPLATE, context)
        written = save_output(content, output_dir / relative)
        logger.info("%s: %s", "Generated" if written else "Unchanged", relative.as_posix())
        return relative, written

    def generate_all(
        self, operations: dict[str, list[OperationContext]], output_dir: Path
    ) -> list[tuple[Path, bool]]:
        """Render every operation, tag group by tag group, in document order."""
        results = []
        for contexts in operations.values():
            for context in contexts:
                results.append(self.generate(context, output_dir))
        return results
