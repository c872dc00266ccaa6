import os
from dotenv import load_dotenv

APP_ENV = os.getenv("APP_ENV", "development").strip().lower()

# Profile file first so it wins over a shared .env
load_dotenv(".env.production" if APP_ENV == "production" else ".env.local")
load_dotenv()


class Settings:
    app_env: str = APP_ENV

    # Empty means the primary store is not configured (memory-only mode)
    database_url: str = os.getenv("DATABASE_URL", "").strip()
    database_echo: bool = os.getenv("DATABASE_ECHO", "False").lower() == "true"
    database_connect_timeout: float = float(os.getenv("DATABASE_CONNECT_TIMEOUT", "3"))
    inventory_table: str = os.getenv("INVENTORY_TABLE", "inventories")

    port: int = int(os.getenv("PORT", "8000"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    default_owner_id: str = os.getenv("DEFAULT_OWNER_ID", "default_user")
    default_location: str = os.getenv("DEFAULT_LOCATION", "fridge")
    # Voice requests always address the refrigerator
    voice_location: str = "冷蔵庫"


settings = Settings()


def mask_database_url(url: str) -> str:
    """Hide credentials in a connection string before logging it."""
    if "@" not in url or "//" not in url:
        return url
    scheme, rest = url.split("//", 1)
    return f"{scheme}//<credentials>@{rest.rsplit('@', 1)[1]}"
