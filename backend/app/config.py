# app/config.py
"""
Application settings loaded from the environment (backend/.env).
"""
import os
from typing import Optional

from pydantic_settings import BaseSettings

BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


class Settings(BaseSettings):
    """All values configurable via environment variables"""

    # ===============================
    # Supabase
    # ===============================
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""

    # ===============================
    # MyJKKN API
    # ===============================
    MYJKKN_API_KEY: str = ""
    MYJKKN_BASE_URL: str = ""
    # None means the variable is not set; the stored config decides
    MYJKKN_MOCK_MODE: Optional[bool] = None
    MYJKKN_PROXY_MODE: Optional[bool] = None
    MYJKKN_PROXY_URL: str = "http://localhost:8000/api/myjkkn"
    MYJKKN_TIMEOUT: float = 30.0
    MYJKKN_CONFIG_PATH: str = os.path.join(BACKEND_DIR, "myjkkn_api_config.json")

    # caches
    NOTIFICATION_CACHE_TTL: float = 30.0
    VERIFICATION_CACHE_TTL: float = 900.0

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = os.path.join(BACKEND_DIR, ".env")
        case_sensitive = True
        extra = "ignore"


settings = Settings()
