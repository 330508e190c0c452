"""
Environment-specific configuration settings.

Cost-optimized defaults for development/testing.
"""

from dataclasses import dataclass
import os


@dataclass
class Settings:
    """Deployment settings with cost-optimized defaults."""

    # Environment
    environment: str = "dev"
    aws_region: str = "eu-west-2"  # Default AWS region

    # Lambda Configuration
    lambda_memory_mb: int = 512
    lambda_timeout_seconds: int = 30

    # Snapshot cache (seconds a fetched billing snapshot is reused)
    snapshot_cache_ttl_seconds: int = 60
    log_level: str = "INFO"

    # Origins allowed to call the admin API
    admin_origins: tuple = ("*",)

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("ENVIRONMENT", "dev")
        region = os.environ.get("AWS_REGION", cls.aws_region)
        origins = tuple(
            o.strip() for o in os.environ.get("ADMIN_ORIGINS", "*").split(",") if o.strip()
        )

        # Production overrides: larger snapshots need more memory and time
        if env == "prod":
            return cls(
                environment="prod",
                aws_region=region,
                lambda_memory_mb=1024,
                lambda_timeout_seconds=60,
                snapshot_cache_ttl_seconds=120,
                admin_origins=origins,
            )

        return cls(environment=env, aws_region=region, admin_origins=origins)
