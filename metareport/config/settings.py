import sys
from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    """
    應用程式全域設定。
    自動從環境變數 (.env) 讀取並驗證型別。
    只在程式進入點讀取一次，再轉成 options 傳給各元件。
    """
    # MetaAPI 設定
    METAAPI_TOKEN: str
    METAAPI_ACCOUNT_ID: str
    METAAPI_BASE_URL: str = "https://mt-client-api-v1.new-york.agiliumtrade.ai"
    METAAPI_TIMEOUT_SECONDS: float = 30.0
    METAAPI_CONNECT_TIMEOUT_SECONDS: float = 5.0
    METAAPI_MAX_RETRIES: int = 3
    METAAPI_RETRY_BASE_DELAY: float = 2.0

    # SendGrid / Email 設定
    SENDGRID_API_KEY: Optional[str] = None
    EMAIL_FROM_ADDRESS: str = ""
    EMAIL_FROM_NAME: str = "MetaReport"
    EMAIL_TO_ADDRESSES: str = ""          # 逗號分隔的多個收件者
    EMAIL_TO_ADDRESS: Optional[str] = None  # 舊版單一收件者欄位 (deprecated)

    # Environment
    TZ: str = "UTC"
    DRY_RUN: bool = False

    # 應用程式行為
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

# Singleton Instance
try:
    settings = Settings()
except Exception as e:
    # logging 依賴 settings，這裡只能用 print 避免循環
    print(f"CRITICAL: Failed to load configuration. Missing env vars? {e}", file=sys.stderr)
    settings = None
