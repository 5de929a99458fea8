import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "localhost")
    api_port: int = int(os.getenv("API_PORT", "8080"))

    # Database settings
    database_file: str = os.getenv("INVENTORY_DB_FILE", "books.db")
    database_timeout: float = float(os.getenv("INVENTORY_DB_TIMEOUT", "5.0"))

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Book Inventory API")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Also serve the routes under /books, the paths of the first release
    mount_legacy_routes: bool = os.getenv("MOUNT_LEGACY_ROUTES", "True").lower() in ("true", "1", "yes")


settings = Settings()
