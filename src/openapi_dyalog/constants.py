"""Output layout, template names and defaults."""

# Output directories
APL_SOURCE_DIR = "APLSource"
TAGS_SUBDIR = "_tags"
MODELS_SUBDIR = "models"

# Templates, relative to the template directories
ENDPOINT_TEMPLATE = "APLSource/_tags/endpoint.aplf.j2"
CLIENT_TEMPLATE = "APLSource/Client.aplc.j2"
UTILS_TEMPLATE = "APLSource/utils.apln.j2"
VERSION_TEMPLATE = "APLSource/Version.aplf.j2"
MODEL_TEMPLATE = "APLSource/models/model.aplc.j2"
README_TEMPLATE = "README.md.j2"

# Defaults
DEFAULT_OUTPUT_DIRECTORY = "./generated"
DEFAULT_CLIENT_CLASS = "Client"
