"""Whole-document artifacts: client class, utilities, version, README and the input document copy."""

import logging
import shutil
from pathlib import Path

from openapi_dyalog.compiler.context import DocumentContext
from openapi_dyalog.compiler.naming import sanitize
from openapi_dyalog.constants import (
    APL_SOURCE_DIR,
    CLIENT_TEMPLATE,
    DEFAULT_CLIENT_CLASS,
    README_TEMPLATE,
    UTILS_TEMPLATE,
    VERSION_TEMPLATE,
)
from openapi_dyalog.generator.templates import TemplateEngine, save_output

logger = logging.getLogger(__name__)


def client_class_name(context: DocumentContext) -> str:
    """Client class name from the ``class_name`` option, made a legal APL name."""
    return sanitize(str(context.custom.get("class_name") or DEFAULT_CLIENT_CLASS))


class ArtifactGenerator:
    """Renders the artifacts that are produced once per document."""

    def __init__(self, engine: TemplateEngine):
        self.engine = engine

    def artifacts(self, context: DocumentContext) -> list[tuple[str, Path]]:
        """Template name and relative output path of each document artifact."""
        source = Path(APL_SOURCE_DIR)
        return [
            (UTILS_TEMPLATE, source / "utils.apln"),
            (VERSION_TEMPLATE, source / "Version.aplf"),
            (CLIENT_TEMPLATE, source / f"{client_class_name(context)}.aplc"),
            (README_TEMPLATE, Path("README.md")),
        ]

    def generate(self, context: DocumentContext, output_dir: Path) -> list[tuple[Path, bool]]:
        """Render every document artifact.

        Returns each relative path with whether it was written.
        """
        context = context.model_copy(
            update={"custom": {**context.custom, "class_name": client_class_name(context)}}
        )

        results = []
        for template_name, relative in self.artifacts(context):
            content = self.engine.render(template_name, context)
            written = save_output(content, output_dir / relative)
            logger.info("%s: %s", "Generated" if written else "Unchanged", relative.as_posix())
            results.append((relative, written))
        return results

    def copy_specification(self, spec_path: Path, output_dir: Path) -> tuple[Path, bool]:
        """Copy the input document into the output directory unless an identical copy exists."""
        relative = Path(spec_path.name)
        target = output_dir / relative
        if target.exists() and target.read_bytes() == spec_path.read_bytes():
            logger.info("Unchanged: %s", relative.as_posix())
            return relative, False
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(spec_path, target)
        logger.info("Copied: %s", relative.as_posix())
        return relative, True
