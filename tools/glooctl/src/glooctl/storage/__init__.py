"""
Storage backends for gateway configuration objects.

Both backends implement :class:`~glooctl.storage.base.Storage`:

  - HTTPStorage  — talks to the control plane REST API
  - FileStorage  — a local directory of YAML files, one per object
"""

from .base import AlreadyExistsError, NotFoundError, Storage, StorageError
from .file import FileStorage, read_file_into
from .http import HTTPStorage

__all__ = [
    "AlreadyExistsError",
    "FileStorage",
    "HTTPStorage",
    "NotFoundError",
    "Storage",
    "StorageError",
    "read_file_into",
]
