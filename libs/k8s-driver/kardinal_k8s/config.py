"""Configuration for the Kardinal Kubernetes driver."""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ClusterConfig, ReconcileOptions


class Settings(BaseSettings):
    """Driver settings."""

    model_config = SettingsConfigDict(
        env_prefix="KARDINAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = "INFO"

    # Cluster Settings
    kubeconfig_path: Optional[str] = None
    kubeconfig_context: Optional[str] = None

    # API Call Settings
    field_manager: str = "kardinal-manager"
    list_timeout_seconds: int = 10
    delete_grace_period_seconds: int = 0
    delete_propagation_policy: str = "Foreground"
    istio_version: str = "v1alpha3"

    # Caller Settings
    conflict_retries: int = Field(
        default=3,
        ge=1,
        description="Attempts per CLI call when a write hits a version conflict",
    )

    def reconcile_options(self) -> ReconcileOptions:
        return ReconcileOptions(
            list_timeout_seconds=self.list_timeout_seconds,
            field_manager=self.field_manager,
            delete_grace_period_seconds=self.delete_grace_period_seconds,
            delete_propagation_policy=self.delete_propagation_policy,
            istio_version=self.istio_version,
        )

    def cluster_config(self) -> ClusterConfig:
        return ClusterConfig(
            kubeconfig_path=self.kubeconfig_path,
            context=self.kubeconfig_context,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
