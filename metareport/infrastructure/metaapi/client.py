from datetime import datetime, timedelta, timezone
from threading import Event
from typing import Any, List, Optional

import requests

from metareport.config.logging import logger
from metareport.config.options import MetaApiOptions
from metareport.core.exceptions import (
    MalformedResponseError,
    ReportCancelledError,
    TransientUpstreamError,
    UpstreamError,
)
from metareport.core.interfaces import AccountDataSource
from metareport.core.models import AccountSnapshot, Deal
from metareport.infrastructure.retry import RetryPolicy
from .mapper import MetaApiMapper, format_utc

# 408 / 429 / 5xx 視為暫時性錯誤，交給 RetryPolicy 重試
TRANSIENT_STATUS_CODES = {408, 429}

class MetaApiClient(AccountDataSource):
    """
    MetaAPI REST 客戶端。
    負責組出 endpoint、送出請求、錯誤分類，並將資料交給 Mapper 轉換。
    同一個 Session 會被帳戶快照與成交紀錄兩個請求同時使用。
    """

    def __init__(self, options: MetaApiOptions, retry_policy: Optional[RetryPolicy] = None,
                 session: Optional[requests.Session] = None):
        self.options = options
        self.base_url = options.base_url.rstrip("/")
        # requests 的 (connect, read) timeout；取消後仍在進行的請求最多卡到 read timeout
        self.timeout = (options.connect_timeout_seconds, options.timeout_seconds)
        self.retry_policy = retry_policy or RetryPolicy(
            max_retries=options.max_retries,
            base_delay=options.retry_base_delay,
        )
        self.session = session or requests.Session()
        self.session.headers.update({
            "auth-token": options.token,
            "Accept": "application/json",
        })

    @property
    def _account_path(self) -> str:
        return f"/users/current/accounts/{self.options.account_id}"

    def _send(self, endpoint: str, cancel_event: Optional[Event]) -> Any:
        """單次 GET，不含重試。回傳解析後的 JSON (可能為 None)。"""
        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise TransientUpstreamError(f"MetaAPI request timed out: {e}")
        except requests.exceptions.ConnectionError as e:
            raise TransientUpstreamError(f"Failed to connect to MetaAPI: {e}")
        except requests.exceptions.RequestException as e:
            raise UpstreamError(f"MetaAPI request failed: {e}")

        # 請求進行中被取消：結果直接丟掉
        if cancel_event is not None and cancel_event.is_set():
            raise ReportCancelledError(f"GET {endpoint} cancelled")

        status = response.status_code
        if status in TRANSIENT_STATUS_CODES or status >= 500:
            raise TransientUpstreamError(
                f"MetaAPI returned {status} for {endpoint}: {response.text[:200]}", status_code=status
            )
        if status >= 400:
            raise UpstreamError(
                f"MetaAPI returned {status} for {endpoint}: {response.text[:200]}", status_code=status
            )

        if not response.content or not response.content.strip():
            return None
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"MetaAPI returned invalid JSON for {endpoint}: {e}")

    def _get(self, endpoint: str, cancel_event: Optional[Event] = None) -> Any:
        return self.retry_policy.run(
            lambda: self._send(endpoint, cancel_event),
            cancel_event=cancel_event,
            description=f"GET {endpoint}",
        )

    def fetch_account(self, cancel_event: Optional[Event] = None) -> AccountSnapshot:
        """獲取帳戶資訊 (餘額、淨值、保證金等)"""
        logger.info("Fetching account information from MetaAPI")
        raw = self._get(f"{self._account_path}/account-information", cancel_event)
        if raw is None:
            raise MalformedResponseError("Received empty response from MetaAPI account-information endpoint")

        snapshot = MetaApiMapper.to_account_snapshot(raw)
        logger.info(f"Retrieved account info. Balance: {snapshot.balance} {snapshot.currency}")
        return snapshot

    def fetch_deals(self, start_time: datetime, end_time: datetime,
                    cancel_event: Optional[Event] = None) -> List[Deal]:
        """獲取指定期間的成交紀錄，保留 MetaAPI 回傳的順序"""
        start_str = format_utc(start_time)
        end_str = format_utc(end_time)
        logger.info(f"Fetching deals from {start_str} to {end_str}")

        raw = self._get(f"{self._account_path}/history-deals/time/{start_str}/{end_str}", cancel_event)
        if raw is None:
            logger.warning("Received empty response from MetaAPI history-deals endpoint, returning empty list")
            return []
        if not isinstance(raw, list):
            raise MalformedResponseError(f"Expected a list of deals, got {type(raw).__name__}")

        deals = [MetaApiMapper.to_deal(d) for d in raw]
        logger.info(f"Retrieved {len(deals)} deals")
        return deals

    def fetch_last_24h_deals(self, cancel_event: Optional[Event] = None) -> List[Deal]:
        end_time = datetime.now(timezone.utc)
        return self.fetch_deals(end_time - timedelta(hours=24), end_time, cancel_event)
