import sys
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Base directory (supports PyInstaller builds) ---
if getattr(sys, 'frozen', False):
    BASE_DIR = Path(sys._MEIPASS)
else:
    BASE_DIR = Path(".")
# ----------------------------------------------------


class Settings(BaseSettings):
    """Catalog service settings, read from KEITRUCK_* environment variables."""

    project_name: str = "Kei Truck Hub"
    database_url: str = f"sqlite:///{BASE_DIR / 'keitruckhub.db'}"
    upload_dir: Path = BASE_DIR / "uploads"

    # CORS
    cors_origins: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Insert the stock catalog when the store starts empty
    seed_catalog: bool = True

    host: str = "0.0.0.0"
    port: int = 4000

    model_config = SettingsConfigDict(env_prefix="KEITRUCK_", env_file=".env", extra="ignore")


settings = Settings()
