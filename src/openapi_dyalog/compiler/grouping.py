"""Groups a document's operations by their first tag."""

from typing import NamedTuple

from openapi_dyalog.parser.base import Document, Operation

DEFAULT_TAG = "default"


class GroupedOperation(NamedTuple):
    path: str
    method: str
    operation: Operation


def primary_tag(operation: Operation) -> str:
    return operation.tags[0] if operation.tags else DEFAULT_TAG


def iter_operations(document: Document):
    """Yield (path, method, operation) in document order: paths, then methods within a path."""
    for path, item in document.paths.items():
        for method, operation in item.operations.items():
            yield GroupedOperation(path, method.lower(), operation)


def group_operations(document: Document) -> dict[str, list[GroupedOperation]]:
    """Group operations by their first tag. Untagged operations go to 'default'.

    Append-only: relative document order is kept inside every group.
    """
    groups: dict[str, list[GroupedOperation]] = {}
    for entry in iter_operations(document):
        groups.setdefault(primary_tag(entry.operation), []).append(entry)
    return groups


def operation_summary(document: Document) -> dict[str, int]:
    """Count operations per tag."""
    return {tag: len(entries) for tag, entries in group_operations(document).items()}
