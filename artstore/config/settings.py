"""Store configuration.

``StoreConfig`` is the explicit configuration object passed to
``new_repository`` and ``ArtifactManager``. ``load_config`` builds it from the
provider chain and is the single place configuration is read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from artstore.config.config_manager import ConfigManager
from artstore.exceptions import ConfigurationError

DEFAULT_TRANSFER_WORKERS = 4  # Parallel file transfers per upload/download

REPOSITORY_KEY = "ART_REPOSITORY"
TRANSFER_WORKERS_KEY = "ART_TRANSFER_WORKERS"
VERIFY_DOWNLOADS_KEY = "ART_VERIFY_DOWNLOADS"
S3_ENDPOINT_KEY = "ART_S3_ENDPOINT_URL"


@dataclass
class StoreConfig:
    """Configuration for one artifact store invocation.

    Attributes:
        repository: Repository URI (s3://bucket/prefix or a local path)
        aws_region: Region for the S3 client (None lets boto3 decide)
        s3_endpoint_url: Endpoint of an S3-compatible store (MinIO, Ceph, ...)
        aws_access_key_id: Explicit access key; None uses the AWS credential chain
        aws_secret_access_key: Explicit secret key, never shown in repr
        transfer_workers: Maximum parallel file transfers
        verify_downloads: Check sha1 and size of every downloaded file
    """

    repository: str
    aws_region: str | None = None
    s3_endpoint_url: str | None = None
    aws_access_key_id: str | None = field(default=None, repr=False)
    aws_secret_access_key: str | None = field(default=None, repr=False)
    transfer_workers: int = DEFAULT_TRANSFER_WORKERS
    verify_downloads: bool = True

    def __post_init__(self) -> None:
        if self.transfer_workers < 1:
            self.transfer_workers = 1

    @classmethod
    def from_config_manager(
        cls, manager: ConfigManager, repository: str | None = None
    ) -> StoreConfig:
        """Create StoreConfig from a provider chain.

        Reads:
        - ART_REPOSITORY: Repository URI (required unless ``repository`` is given)
        - ART_TRANSFER_WORKERS: Parallel transfers (default: 4)
        - ART_VERIFY_DOWNLOADS: Verify downloaded files (default: true)
        - ART_S3_ENDPOINT_URL: S3-compatible endpoint (optional)
        - AWS_REGION, AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY (optional)

        Args:
            manager: Configuration provider chain
            repository: Explicit repository URI overriding ART_REPOSITORY

        Raises:
            ConfigurationError: If no repository is configured
        """
        repo_uri = repository or manager.get(REPOSITORY_KEY)
        if not repo_uri:
            raise ConfigurationError(
                f"{REPOSITORY_KEY} is not set. Set it to s3://bucket/prefix or a local "
                "directory, or pass --repo."
            )

        return cls(
            repository=repo_uri,
            aws_region=manager.get("AWS_REGION"),
            s3_endpoint_url=manager.get(S3_ENDPOINT_KEY),
            aws_access_key_id=manager.get("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=manager.get("AWS_SECRET_ACCESS_KEY"),
            transfer_workers=manager.get_int(TRANSFER_WORKERS_KEY, DEFAULT_TRANSFER_WORKERS),
            verify_downloads=manager.get_bool(VERIFY_DOWNLOADS_KEY, True),
        )


def load_config(env_file: str | Path = ".env", repository: str | None = None) -> StoreConfig:
    """Load store configuration from the environment and ``env_file``.

    Raises:
        ConfigurationError: If no repository is configured
    """
    return StoreConfig.from_config_manager(ConfigManager(env_file=env_file), repository)
