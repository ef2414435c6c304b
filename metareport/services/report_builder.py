from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from datetime import datetime, timedelta, timezone
from threading import Event
from typing import Callable, Optional

from metareport.config.logging import logger
from metareport.core.exceptions import ReportCancelledError
from metareport.core.interfaces import AccountDataSource
from metareport.core.models import AggregatedReport

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

class ReportBuilder:
    """
    負責產生一份報表：同時抓帳戶快照與過去 24 小時的成交紀錄，再組成 AggregatedReport。
    任一邊失敗就整份放棄，錯誤原封不動往上丟；重試已經在 client 做過了。
    """

    def __init__(self, source: AccountDataSource, period: timedelta = timedelta(hours=24),
                 clock: Callable[[], datetime] = utc_now, poll_interval: float = 0.1):
        self.source = source
        self.period = period
        self.clock = clock
        self.poll_interval = poll_interval

    def build(self, cancel_event: Optional[Event] = None) -> AggregatedReport:
        logger.info("Generating trading report")

        end_time = self.clock()
        start_time = end_time - self.period

        # abort 同時通知兩個 fetch：呼叫端取消或另一邊失敗時設定
        abort = Event()
        executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="metaapi-fetch")
        try:
            account_future = executor.submit(self.source.fetch_account, abort)
            deals_future = executor.submit(self.source.fetch_deals, start_time, end_time, abort)

            pending = {account_future, deals_future}
            while pending:
                if cancel_event is not None and cancel_event.is_set():
                    raise ReportCancelledError("Report generation cancelled")
                done, pending = wait(pending, timeout=self.poll_interval, return_when=FIRST_EXCEPTION)
                for future in done:
                    error = future.exception()
                    if error is not None:
                        raise error

            account = account_future.result()
            deals = deals_future.result()
        finally:
            abort.set()
            executor.shutdown(wait=False, cancel_futures=True)

        report = AggregatedReport(
            account=account,
            deals=tuple(deals),
            generated_at=self.clock(),
            period_start=start_time,
            period_end=end_time,
        )

        logger.info(
            f"Report generated: Balance={account.balance} {account.currency}, "
            f"Trades={report.trade_count}, P/L={report.total_profit}"
        )
        return report
