import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Runtime settings read from the environment (.env supported)"""
    database_url: Optional[str] = None
    db_host: str = "localhost"
    db_port: str = "3306"
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "lectures"
    sql_echo: bool = False

    log_level: str = "INFO"
    log_file: Optional[str] = "app.log"

    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    forecast_risk_threshold: int = 70
    forecast_limit: int = 20

    app_host: str = "0.0.0.0"
    app_port: int = 8000

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"mysql+aiomysql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"


@lru_cache()
def get_settings() -> Settings:
    origins = os.getenv("CORS_ORIGINS", "*")
    return Settings(
        database_url=os.getenv("DATABASE_URL") or None,
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=os.getenv("DB_PORT", "3306"),
        db_user=os.getenv("DB_USER", "root"),
        db_password=os.getenv("DB_PASSWORD", ""),
        db_name=os.getenv("DB_NAME", "lectures"),
        sql_echo=_env_bool("SQL_ECHO"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_file=os.getenv("LOG_FILE", "app.log") or None,
        cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        forecast_risk_threshold=int(os.getenv("FORECAST_RISK_THRESHOLD", "70")),
        forecast_limit=int(os.getenv("FORECAST_LIMIT", "20")),
        app_host=os.getenv("APP_HOST", "0.0.0.0"),
        app_port=int(os.getenv("APP_PORT", "8000")),
    )
