"""PyCoreSync - keep a customized project in sync with its upstream core."""

from .api import GitHubClient
from .exceptions import (
    CoreSyncConfigError,
    CoreSyncConfigReadError,
    CoreSyncConfigWriteError,
    CoreSyncError,
    CoreSyncInvalidResponseError,
    CoreSyncIOError,
    CoreSyncNetworkError,
    CoreSyncTransplantError,
    CoreSyncVcsError,
)
from .utils import hash_file
from .vcs import GitClient

__version__ = "0.1.0"

__all__ = [
    "GitHubClient",
    "GitClient",
    "CoreSyncError",
    "CoreSyncConfigError",
    "CoreSyncConfigReadError",
    "CoreSyncConfigWriteError",
    "CoreSyncNetworkError",
    "CoreSyncInvalidResponseError",
    "CoreSyncVcsError",
    "CoreSyncIOError",
    "CoreSyncTransplantError",
    "hash_file",
]
