from pathlib import Path

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    registry_seed_path: str = "/config/registry.yaml"
    log_level: str = "INFO"
    log_capacity: int = 1000
    probe_timeout_ms: int = 5000
    generation_timeout_ms: int = 60000
    health_refresh_interval_seconds: float = 0.0
    record_generations: bool = True
    admin_password: str = "admin123"
    session_cookie_name: str = "admin-session"
    session_max_age_seconds: int = 60 * 60 * 24
    cookie_secure: bool = False
    cors_origins: list[str] = ["*"]

    model_config = {"env_prefix": "AIDEN_"}


settings = Settings()


def load_registry_seed(path: str | None = None) -> list[dict]:
    """Load seed registry entries from YAML config.

    A missing file is not an error: the registry simply starts empty.
    """
    config_path = Path(path or settings.registry_seed_path)
    if not config_path.exists():
        return []
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    entries = data.get("registry", [])
    if not isinstance(entries, list):
        raise ValueError(f"'registry' must be a list in {config_path}")
    return [entry for entry in entries if isinstance(entry, dict)]
