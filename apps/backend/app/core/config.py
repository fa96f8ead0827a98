from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Chat Widget Backend"
    app_version: str = "1.0.0"
    environment: str = "production"
    log_level: str = "INFO"

    data_dir: Path = Path("data")
    # Defaults to <data_dir>/analytics when unset
    analytics_dir: Optional[Path] = None
    # Defaults to a SQLite file under data_dir when unset
    database_url: str = ""

    admin_username: str = "admin"
    admin_password: str = "demo123"

    cdn_base_url: str = "http://localhost:3000"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]

    # Reject ingestion for unknown or disabled tenants
    require_known_tenant: bool = False

    overview_days: int = 7
    report_days: int = 30
    retention_days: int = 90

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    def resolved_analytics_dir(self) -> Path:
        return self.analytics_dir or (self.data_dir / "analytics")

    def resolved_database_url(self) -> str:
        if self.database_url.strip():
            return self.database_url.strip()
        return f"sqlite:///{(self.data_dir / 'widget.db').as_posix()}"


settings = Settings()
