import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8080"))

    # MongoDB settings
    mongo_uri: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    mongo_db: str = os.getenv("MONGO_DB", "bookstore")
    mongo_collection: str = os.getenv("MONGO_COLLECTION", "books")
    mongo_timeout: float = float(os.getenv("MONGO_TIMEOUT", "5"))  # seconds, per store call

    # Page template
    template_dir: Optional[str] = os.getenv("TEMPLATE_DIR")  # unset: template shipped in the pages package
    template_name: str = os.getenv("TEMPLATE_NAME", "index.html")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Bookstore")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "False").lower() in ("true", "1", "yes")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
