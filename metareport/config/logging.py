import logging
import sys
from typing import Optional

from metareport.config.settings import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def _level_from_settings() -> int:
    # settings 為 None 代表 .env 讀取失敗，報表工具仍需要能把錯誤印出來
    name = settings.LOG_LEVEL.upper() if settings and settings.LOG_LEVEL else "INFO"
    return getattr(logging, name, logging.INFO)

def setup_logging(name: str = "metareport", level: Optional[int] = None) -> logging.Logger:
    """
    MetaReport 的 logger：寫到 stdout，cron / container 直接收。
    重複呼叫回傳同一個 logger，不會多掛 handler。
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = _level_from_settings() if level is None else level
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    return logger

logger = setup_logging()
