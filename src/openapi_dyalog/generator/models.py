"""Model generator: one APL class file per component schema and synthetic model."""

import logging
from pathlib import Path

from openapi_dyalog.compiler.context import ModelContext
from openapi_dyalog.constants import APL_SOURCE_DIR, MODEL_TEMPLATE, MODELS_SUBDIR
from openapi_dyalog.generator.templates import TemplateEngine, save_output

logger = logging.getLogger(__name__)


class ModelGenerator:
    """Renders model contexts into ``APLSource/models/<ClassName>.aplc``."""

    def __init__(self, engine: TemplateEngine):
        self.engine = engine

    def relative_path(self, context: ModelContext) -> Path:
        return Path(APL_SOURCE_DIR) / MODELS_SUBDIR / f"{context.class_name}.aplc"

    def generate(self, context: ModelContext, output_dir: Path) -> tuple[Path, bool]:
        relative = self.relative_path(context)
        content = self.engine.render(MODEL_TEMPLATE, context)
        written = save_output(content, output_dir / relative)
        logger.info("%s: %s", "Generated" if written else "Unchanged", relative.as_posix())
        return relative, written

    def generate_all(self, models: list[ModelContext], output_dir: Path) -> list[tuple[Path, bool]]:
        results = [self.generate(context, output_dir) for context in models]
        synthetic = sum(1 for context in models if context.synthetic)
        logger.debug(
            "Rendered %d component and %d synthetic model(s)", len(models) - synthetic, synthetic
        )
        return results
