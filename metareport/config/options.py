from dataclasses import dataclass
from typing import List, Optional

from metareport.core.exceptions import ConfigurationError

DEFAULT_METAAPI_URL = "https://mt-client-api-v1.new-york.agiliumtrade.ai"


@dataclass(frozen=True)
class MetaApiOptions:
    """MetaAPI 連線參數，建構時傳入 client，執行期間不再讀 settings。"""
    token: str
    account_id: str
    base_url: str = DEFAULT_METAAPI_URL
    timeout_seconds: float = 30.0          # read timeout
    connect_timeout_seconds: float = 5.0
    max_retries: int = 3
    retry_base_delay: float = 2.0

    @classmethod
    def from_settings(cls, settings) -> "MetaApiOptions":
        if settings is None:
            raise ConfigurationError("Settings are not loaded, check METAAPI_TOKEN / METAAPI_ACCOUNT_ID")
        return cls(
            token=settings.METAAPI_TOKEN,
            account_id=settings.METAAPI_ACCOUNT_ID,
            base_url=settings.METAAPI_BASE_URL.rstrip("/"),
            timeout_seconds=settings.METAAPI_TIMEOUT_SECONDS,
            connect_timeout_seconds=settings.METAAPI_CONNECT_TIMEOUT_SECONDS,
            max_retries=settings.METAAPI_MAX_RETRIES,
            retry_base_delay=settings.METAAPI_RETRY_BASE_DELAY,
        )


@dataclass(frozen=True)
class EmailOptions:
    """SendGrid 寄件設定與收件者清單。"""
    api_key: str = ""
    from_address: str = ""
    from_name: str = "MetaReport"
    to_addresses: str = ""
    # Deprecated single-address field, merged into get_recipients()
    to_address: Optional[str] = None

    @classmethod
    def from_settings(cls, settings) -> "EmailOptions":
        if settings is None:
            raise ConfigurationError("Settings are not loaded")
        return cls(
            api_key=settings.SENDGRID_API_KEY or "",
            from_address=settings.EMAIL_FROM_ADDRESS,
            from_name=settings.EMAIL_FROM_NAME,
            to_addresses=settings.EMAIL_TO_ADDRESSES,
            to_address=settings.EMAIL_TO_ADDRESS,
        )

    def get_recipients(self) -> List[str]:
        """
        Merge the comma-separated list and the legacy single address.
        Duplicates are dropped case-insensitively; the first spelling and
        the input order are kept.
        """
        candidates = [part.strip() for part in (self.to_addresses or "").split(",")]
        if self.to_address:
            candidates.append(self.to_address.strip())

        recipients: List[str] = []
        seen = set()
        for address in candidates:
            if not address:
                continue
            key = address.lower()
            if key in seen:
                continue
            seen.add(key)
            recipients.append(address)
        return recipients
