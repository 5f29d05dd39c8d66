"""
Runtimes wire domain services to their transports.

- Services / init_services: collaborators shared by a process's handlers
- LocalRuntime: the whole system in-process
"""

from propflow.runtime.local import LocalRuntime
from propflow.runtime.services import (
    Services,
    get_services,
    init_services,
    lambda_entry,
    reset_services,
    set_services,
)

__all__ = [
    "LocalRuntime",
    "Services",
    "get_services",
    "init_services",
    "lambda_entry",
    "reset_services",
    "set_services",
]
