"""
Keys recognised in a declarative service definition.

A configured service is described by a mapping such as::

    {
        "class": "myapp.mail.Mailer",       # or "container" / "file"
        "arguments": ["$transport", "%mail.sender%"],
        "configuration": {"retries": 3},
        "init": True,
    }

Exactly one of ``class``, ``container`` and ``file`` must be present.
"""

__all__ = [
    "SERVICE_CLASS",
    "SERVICE_CONTAINER",
    "SERVICE_FILE",
    "SERVICE_ARGUMENTS",
    "SERVICE_CONFIGURATION",
    "SERVICE_TYPE",
    "SERVICE_INIT",
    "SERVICE_INIT_ALIASES",
    "CONSTRUCTION_KEYS",
    "FILE_RESULT_NAME",
    "FILE_ARGUMENTS_NAME",
    "FILE_REGISTRY_NAME",
]

SERVICE_CLASS = "class"
SERVICE_CONTAINER = "container"
SERVICE_FILE = "file"
SERVICE_ARGUMENTS = "arguments"
SERVICE_CONFIGURATION = "configuration"
SERVICE_TYPE = "type"
SERVICE_INIT = "init"
SERVICE_INIT_ALIASES = (SERVICE_INIT, "initOnLoad")

# In priority order.
CONSTRUCTION_KEYS = (SERVICE_CLASS, SERVICE_CONTAINER, SERVICE_FILE)

# Globals seen by, and the result name read from, a file-based service script.
FILE_ARGUMENTS_NAME = "ARGUMENTS"
FILE_REGISTRY_NAME = "REGISTRY"
FILE_RESULT_NAME = "SERVICE"
