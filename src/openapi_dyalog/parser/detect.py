"""Detect which API description flavour a loaded document is."""


def detect_format(data: object) -> str | None:
    """Detect the flavour of a loaded API description.

    Returns: 'openapi3', 'swagger2', or None when the mapping is neither.
    """
    if not isinstance(data, dict):
        return None

    version = data.get("openapi")
    if version is not None and str(version).startswith("3"):
        return "openapi3"

    version = data.get("swagger")
    if version is not None and str(version).startswith("2"):
        return "swagger2"

    return None
