from pydantic import BaseModel
from pathlib import Path
import os

PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseModel):
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_key: str = os.getenv("SUPABASE_KEY", "")
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))
    static_dir: str = os.getenv("STATIC_DIR", str(PACKAGE_DIR / "static"))
    news_path: str = os.getenv("NEWS_PATH", str(PACKAGE_DIR / "static" / "news.json"))
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "15"))
    user_agent: str = os.getenv("USER_AGENT", "relief-portal/1.0")
    archive_mode: str = os.getenv("ARCHIVE_MODE", "background")  # "background" | "queue" | "off"
    archive_table: str = os.getenv("ARCHIVE_TABLE", "news")
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    archive_queue_key: str = os.getenv("ARCHIVE_QUEUE_KEY", "relief:archive:queue")
    archive_errors_key: str = os.getenv("ARCHIVE_ERRORS_KEY", "relief:archive:errors")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = os.getenv("LOG_JSON", "0") == "1"


settings = Settings()
