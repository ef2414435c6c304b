import threading
from datetime import datetime, timedelta, timezone

import pytest

from factories import make_account, make_deal
from metareport.core.exceptions import ReportCancelledError, TransientUpstreamError, UpstreamError
from metareport.core.interfaces import AccountDataSource
from metareport.services.report_builder import ReportBuilder

T0 = datetime(2026, 1, 30, 15, 0, tzinfo=timezone.utc)

class FakeSource(AccountDataSource):
    def __init__(self, account=None, deals=(), account_error=None, deals_error=None):
        self.account = account or make_account()
        self.deals = list(deals)
        self.account_error = account_error
        self.deals_error = deals_error
        self.deal_ranges = []
        self.threads = set()

    def fetch_account(self, cancel_event=None):
        self.threads.add(threading.current_thread().name)
        if self.account_error:
            raise self.account_error
        return self.account

    def fetch_deals(self, start_time, end_time, cancel_event=None):
        self.threads.add(threading.current_thread().name)
        self.deal_ranges.append((start_time, end_time))
        if self.deals_error:
            raise self.deals_error
        return self.deals

class TickingClock:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return T0 + timedelta(seconds=self.calls - 1)

def test_build_assembles_report():
    deals = [make_deal(id="1", profit="10"), make_deal(id="2", type="DEAL_TYPE_BALANCE", profit="99")]
    source = FakeSource(deals=deals)
    report = ReportBuilder(source, clock=TickingClock()).build()

    assert report.account == source.account
    assert [d.id for d in report.deals] == ["1", "2"]
    assert report.period_end == T0
    assert report.period_start == T0 - timedelta(hours=24)
    assert source.deal_ranges == [(T0 - timedelta(hours=24), T0)]
    # generated_at is read again after both fetches finished
    assert report.generated_at == T0 + timedelta(seconds=1)
    assert report.trade_count == 1

def test_fetches_run_on_worker_threads():
    source = FakeSource()
    ReportBuilder(source).build()
    assert all(name.startswith("metaapi-fetch") for name in source.threads)

def test_fetches_overlap():
    # Each fetch waits for the other one to start; sequential fetching would time out
    barrier = threading.Barrier(2, timeout=5)

    class BarrierSource(FakeSource):
        def fetch_account(self, cancel_event=None):
            barrier.wait()
            return super().fetch_account(cancel_event)

        def fetch_deals(self, start_time, end_time, cancel_event=None):
            barrier.wait()
            return super().fetch_deals(start_time, end_time, cancel_event)

    report = ReportBuilder(BarrierSource()).build()
    assert report.deals == ()

def test_deals_failure_propagates_unchanged():
    error = TransientUpstreamError("429 Too Many Requests", status_code=429)
    with pytest.raises(TransientUpstreamError) as exc_info:
        ReportBuilder(FakeSource(deals_error=error)).build()
    assert exc_info.value is error

def test_account_failure_propagates_unchanged():
    error = UpstreamError("404 Not Found", status_code=404)
    with pytest.raises(UpstreamError) as exc_info:
        ReportBuilder(FakeSource(account_error=error)).build()
    assert exc_info.value is error

def test_failure_signals_sibling_fetch():
    error = UpstreamError("500")
    sibling_aborted = threading.Event()

    class SlowAccountSource(FakeSource):
        def fetch_account(self, cancel_event=None):
            # Returns once the builder gives up on this fetch
            if cancel_event.wait(5):
                sibling_aborted.set()
            return self.account

    with pytest.raises(UpstreamError):
        ReportBuilder(SlowAccountSource(deals_error=error)).build()
    assert sibling_aborted.wait(5)

def test_cancel_event_aborts_build():
    cancel_event = threading.Event()
    cancel_event.set()

    class BlockingSource(FakeSource):
        def fetch_account(self, cancel_event=None):
            cancel_event.wait(5)
            return self.account

    with pytest.raises(ReportCancelledError):
        ReportBuilder(BlockingSource()).build(cancel_event)
