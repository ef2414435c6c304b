from datetime import datetime, timezone

import pytest

from factories import make_deal, make_report


@pytest.fixture
def sample_report():
    return make_report([
        make_deal(id="1", symbol="EURUSD", type="DEAL_TYPE_BUY", profit="50.00", volume="0.1",
                  time=datetime(2026, 1, 30, 10, 30, tzinfo=timezone.utc)),
        make_deal(id="2", symbol="GBPUSD", type="DEAL_TYPE_SELL", profit="-20.00", volume="0.2",
                  time=datetime(2026, 1, 30, 14, 45, tzinfo=timezone.utc)),
        make_deal(id="3", symbol="", type="DEAL_TYPE_BALANCE", profit="5000.00", volume="0",
                  time=datetime(2026, 1, 30, 9, 0, tzinfo=timezone.utc)),
    ])
