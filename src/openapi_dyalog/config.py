"""
Configuration for a generation run.

Options come from an optional YAML or JSON config file merged with command
line overrides. Keys that are not generator options are kept in ``custom``
and handed to the templates.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from openapi_dyalog.compiler.context import CustomValue
from openapi_dyalog.compiler.naming import snake_case
from openapi_dyalog.constants import DEFAULT_OUTPUT_DIRECTORY


class ConfigError(Exception):
    """Exception raised for configuration-related errors."""

    pass


class GeneratorOptions(BaseModel):
    specification_path: str = ""
    output_directory: str = DEFAULT_OUTPUT_DIRECTORY
    template_directory: str | None = None
    namespace: str | None = None
    disable_validation: bool = False
    custom: dict[str, CustomValue] = {}

    @property
    def specification_file(self) -> Path:
        return Path(self.specification_path)

    @property
    def output_path(self) -> Path:
        return Path(self.output_directory)

    @property
    def template_path(self) -> Path | None:
        return Path(self.template_directory) if self.template_directory else None

    def validation_errors(self) -> list[str]:
        errors = []
        if not self.specification_path.strip():
            errors.append("Specification path is required")
        if not self.output_directory.strip():
            errors.append("Output directory is required")
        return errors

    def is_valid(self) -> bool:
        return not self.validation_errors()


def _load_config_file(config_file: Path) -> dict:
    if not config_file.exists():
        raise ConfigError(f"Configuration file not found: {config_file}")
    try:
        data = yaml.safe_load(config_file.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid configuration file {config_file}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file must contain a mapping: {config_file}")
    return data


def load_options(config_file: Path | None = None, **overrides) -> GeneratorOptions:
    """Build generator options from a config file and keyword overrides.

    Overrides set to None are ignored, so unset CLI options never clobber
    values from the file. Keys are matched in snake case; a file may say
    ``outputDirectory`` or ``output_directory``.
    """
    raw = _load_config_file(config_file) if config_file is not None else {}
    raw.update({key: value for key, value in overrides.items() if value is not None})

    known = set(GeneratorOptions.model_fields)
    values: dict = {}
    custom: dict = {}
    for key, value in raw.items():
        name = snake_case(str(key)) or str(key)
        if name == "custom":
            if not isinstance(value, dict):
                raise ConfigError("'custom' must be a mapping")
            custom.update({snake_case(str(k)) or str(k): v for k, v in value.items()})
        elif name in known:
            values[name] = value
        else:
            custom[name] = value

    try:
        return GeneratorOptions(**values, custom=custom)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
