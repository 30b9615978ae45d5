"""
Application configuration using Pydantic Settings
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3001

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    SERVICE_NAME: str = "ario-parquet-sidecar"

    # Checkpoint history
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/sidecar.db"

    # Parquet storage
    DATA_DIR: str = "./data"
    PARQUET_BATCH_SIZE: int = 1000
    PARQUET_COMPRESSION: str = "gzip"

    # Scheduling (crontab expressions, UTC)
    SCHEDULER_ENABLED: bool = True
    FLUSH_INTERVAL: str = "*/5 * * * *"
    CHECKPOINT_INTERVAL: str = "0 2 * * *"

    # Arweave / ArNS
    ARWEAVE_WALLET_PATH: Optional[str] = "./config/wallet.json"
    ARWEAVE_GATEWAY_URL: str = "https://arweave.net"
    ARNS_NAME: str = "ario-parquet-data"
    AUTO_UPDATE_ARNS: bool = False
    ARNS_UPDATE_URL: Optional[str] = None
    ARNS_TTL_SECONDS: int = 3600
    CATALOG_VERSION: str = "1.0.0"

    MAX_RETRIES: int = 3

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
