"""ghostpost - publish markdown notes from a local vault to a Ghost blog."""

from ghostpost.config import GhostPostConfig, load_config
from ghostpost.errors import (
    ConfigurationError,
    PostNotFoundError,
    PublishError,
    PublishReport,
    RemoteError,
    ResolutionError,
)
from ghostpost.publisher import PublishOutcome, Publisher, PublishStage, publish_document
from ghostpost.vault import EnvSecretStore, LocalVault

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "EnvSecretStore",
    "GhostPostConfig",
    "LocalVault",
    "PostNotFoundError",
    "PublishError",
    "PublishOutcome",
    "PublishReport",
    "PublishStage",
    "Publisher",
    "RemoteError",
    "ResolutionError",
    "load_config",
    "publish_document",
]
