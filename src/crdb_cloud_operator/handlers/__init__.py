"""Handler modules for CRD resources."""

# Import handlers to register them - all handlers register themselves via @kopf decorators
from . import connection  # noqa: F401
from . import inventory  # noqa: F401
