import logging
import os
from typing import List
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Explicitly load .env file before defining Settings
env_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), ".env")
load_dotenv(env_path)

class Settings(BaseSettings):
    PROJECT_NAME: str = "CloudVault"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Metadata store
    SQLALCHEMY_DATABASE_URI: str = "sqlite:///./cloudvault.db"

    # Security
    SECRET_KEY: str = "YOUR_SECRET_KEY_HERE"
    ALGORITHM: str = "HS256"
    SHARE_TOKEN_EXPIRE_MINUTES: int = 60
    PRESIGNED_URL_EXPIRE_SECONDS: int = 3600
    # Base used to build absolute share / presigned links
    PUBLIC_BASE_URL: str = "http://127.0.0.1:8899"

    # Versioning and quota
    MAX_VERSIONS: int = 3
    DEFAULT_QUOTA_BYTES: int = 5368709120
    MAX_UPLOAD_SIZE: int = 100 * 1024 * 1024

    # Storage
    UPLOAD_DIR: str = os.path.join(os.getcwd(), "upload_storage")
    # List of paths for object storage. Comma separated string in env, parsed to list.
    STORAGE_PATHS_STR: str = ""

    @property
    def STORAGE_PATHS(self) -> List[str]:
        paths = [self.UPLOAD_DIR]
        if self.STORAGE_PATHS_STR:
            # Handle potential quote wrapping from env file parsing
            raw_str = self.STORAGE_PATHS_STR.strip('"\'')
            extra_paths = [p.strip() for p in raw_str.split(",") if p.strip()]
            paths.extend(extra_paths)
        return paths

    class Config:
        case_sensitive = True

settings = Settings()


def ensure_storage_paths(paths: List[str]) -> None:
    for path in paths:
        if not os.path.exists(path):
            try:
                os.makedirs(path)
            except OSError as e:
                logger.warning("Could not create storage path %s: %s", path, e)
