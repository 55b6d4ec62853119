"""Form engine constants shared across the SDK.

These values are referenced by the resolver, validator and form store.
The user-facing validation messages can be overridden via environment
variables so deployments can localise them without code changes.
"""

import os
import re

# Reserved jumpTo target meaning "leave the questions and end the form".
END_FORM_TARGET = "end_form"

# local@domain.tld: no whitespace, exactly one @ before a dotted domain.
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

# Validation messages.
# Overridable via FORMFLOW_REQUIRED_MESSAGE / FORMFLOW_EMAIL_MESSAGE env vars.
REQUIRED_FIELD_MESSAGE = os.getenv("FORMFLOW_REQUIRED_MESSAGE", "This field is required")
INVALID_EMAIL_MESSAGE = os.getenv("FORMFLOW_EMAIL_MESSAGE", "Invalid e-mail address")

# File suffixes the form store loads from its directory.
FORM_FILE_SUFFIXES: tuple[str, ...] = (".yaml", ".yml", ".json")
