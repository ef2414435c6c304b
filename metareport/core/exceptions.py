from typing import Optional

class AppError(Exception):
    """所有應用程式自定義錯誤的基類"""
    pass

class ConfigurationError(AppError):
    """設定錯誤 (如缺少環境變數、無效的時區)"""
    pass

class UpstreamError(AppError):
    """MetaAPI 呼叫失敗，本次報表產生直接中止"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

class TransientUpstreamError(UpstreamError):
    """可重試的錯誤：連線逾時、5xx、429 rate limit"""
    pass

class MalformedResponseError(UpstreamError):
    """回應內容無法解析成預期的格式"""
    pass

class ReportCancelledError(AppError):
    """呼叫端主動取消，不算失敗"""
    pass

class DeliveryError(AppError):
    """報表寄送失敗 (如 SendGrid API 錯誤)"""
    pass
