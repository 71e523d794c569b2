"""CLI entry point for openapi-dyalog."""

import sys
from pathlib import Path

import click

from openapi_dyalog.compiler.grouping import operation_summary
from openapi_dyalog.config import ConfigError, load_options
from openapi_dyalog.generator.code import CodeGenerator
from openapi_dyalog.generator.templates import TemplateEngine, TemplateError
from openapi_dyalog.log import configure_logging
from openapi_dyalog.parser.base import Document
from openapi_dyalog.parser.openapi import SpecificationError, load_document

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def _echo_summary(document: Document) -> None:
    click.echo(f"Title: {document.info.title or 'API'}")
    click.echo(f"Version: {document.info.version or 'unknown'}")
    click.echo(f"Paths: {len(document.paths)}")
    for tag, count in operation_summary(document).items():
        click.echo(f"  {tag}: {count} operation(s)")


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
def main():
    """OpenAPI Dyalog: generate Dyalog APL clients from OpenAPI documents."""
    pass


@main.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output", required=False, type=click.Path(file_okay=False, path_type=Path))
@click.option("--namespace", default=None, help="Namespace recorded in the generated client.")
@click.option("--templates", "template_dir", default=None, type=click.Path(exists=True, file_okay=False, path_type=Path), help="Directory of templates overriding the packaged ones.")
@click.option("--config", "config_file", default=None, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="YAML or JSON configuration file.")
@click.option("-nv", "--no-validation", "no_validation", is_flag=True, help="Skip structural validation of the document.")
@click.option("--log-level", default="INFO", type=click.Choice(LOG_LEVELS, case_sensitive=False), help="Logging verbosity.")
def generate(
    spec_path: Path,
    output: Path | None,
    namespace: str | None,
    template_dir: Path | None,
    config_file: Path | None,
    no_validation: bool | None,
    log_level: str,
):
    """Generate a Dyalog APL client from SPEC_PATH into OUTPUT (default ./generated)."""
    configure_logging(log_level)

    try:
        options = load_options(
            config_file,
            specification_path=str(spec_path),
            output_directory=str(output) if output is not None else None,
            template_directory=str(template_dir) if template_dir is not None else None,
            namespace=namespace,
            disable_validation=no_validation or None,
        )
    except ConfigError as e:
        _fail(str(e))
    if not options.is_valid():
        _fail("; ".join(options.validation_errors()))

    click.echo(f"Loading {spec_path}...")
    try:
        generator = CodeGenerator(options)
        document = generator.load()
    except SpecificationError as e:
        for error in e.errors:
            click.echo(f"  {error}", err=True)
        _fail(str(e))
    except TemplateError as e:
        _fail(str(e))

    _echo_summary(document)

    click.echo(f"Generating client in {options.output_path}...")
    try:
        report = generator.generate(document)
        report.add([generator.artifacts.copy_specification(options.specification_file, options.output_path)])
    except TemplateError as e:
        _fail(str(e))

    for failure in report.failures:
        click.echo(
            f"Failed: {failure.method.upper()} {failure.path} ({failure.operation_id}): {failure.error}",
            err=True,
        )

    click.echo(
        f"Done! {len(report.written)} file(s) written, "
        f"{len(report.unchanged)} unchanged in {options.output_path}"
    )
    if not report.success:
        sys.exit(1)


@main.command()
@click.argument("spec_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-nv", "--no-validation", "no_validation", is_flag=True, help="Skip structural validation of the document.")
def summary(spec_path: Path, no_validation: bool):
    """Show the operations per tag in SPEC_PATH."""
    try:
        document = load_document(spec_path, validate=not no_validation)
    except SpecificationError as e:
        _fail(str(e))
    _echo_summary(document)


@main.command()
@click.option("--templates", "template_dir", default=None, type=click.Path(exists=True, file_okay=False, path_type=Path), help="Directory of templates overriding the packaged ones.")
def templates(template_dir: Path | None):
    """List the templates available for rendering."""
    for name in TemplateEngine(template_dir).list_templates():
        click.echo(name)
