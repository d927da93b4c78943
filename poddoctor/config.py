"""Application configuration from environment."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PODDOCTOR_",
        extra="ignore",
    )

    # Cluster access: set PODDOCTOR_IN_CLUSTER=true when running inside Kubernetes
    in_cluster: bool = False
    kube_context: str | None = None
    kube_verify_ssl: bool = False
    request_timeout: int = 30  # seconds, per API call

    log_level: str = "INFO"

    # Analyzers
    log_tail_lines: int = 100
    restart_warning_threshold: int = 5

    # Scan
    scan_concurrency: int = 5
    scan_timeout_seconds: float = 120.0
    list_limit: int = 500  # page size; list calls follow continue tokens


settings = Settings()
