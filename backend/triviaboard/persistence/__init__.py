"""Client for the record-keeping service that owns events, teams and scores."""

from .client import (
    PersistenceClient,
    create_persistence_client,
    load_snapshot_file,
    parse_snapshot,
)
from .config import PersistenceConfig
from .exceptions import (
    PersistenceAPIError,
    PersistenceAuthError,
    PersistenceNotFoundError,
)

__all__ = [
    "PersistenceClient",
    "PersistenceConfig",
    "create_persistence_client",
    "load_snapshot_file",
    "parse_snapshot",
    "PersistenceAPIError",
    "PersistenceAuthError",
    "PersistenceNotFoundError",
]
