"""anyget — fetch a file or directory tree from anywhere.

    from anyget import get_any
    get_any("git::https://github.com/owner/repo.git?ref=v1.2.0", "./vendor/x")
"""

from __future__ import annotations

__version__ = "0.1.0"

from anyget.core.context import Context
from anyget.core.models import ClientMode
from anyget.services.client import Client, get, get_any, get_file

__all__ = [
    "Client",
    "ClientMode",
    "Context",
    "get",
    "get_any",
    "get_file",
    "__version__",
]
