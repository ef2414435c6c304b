from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from metareport.services import metrics

@dataclass(frozen=True)
class AccountSnapshot:
    """
    帳戶快照模型 (Domain Model)。
    代表報表產生當下的 MT4/MT5 帳戶狀態，每次產生報表都整份重新抓取。
    """
    balance: Decimal
    equity: Decimal
    margin: Decimal              # 已用保證金
    free_margin: Decimal
    leverage: int
    currency: str
    broker: str
    server: str
    name: str                    # 帳戶持有人
    login: str
    platform: str                # mt4 / mt5
    margin_level: Optional[Decimal] = None  # 保證金水位 (%)，無持倉時為 None

@dataclass(frozen=True)
class Deal:
    """
    一筆歷史成交紀錄。
    包含真正的買賣成交，也包含入金 (balance)、信用 (credit) 等管理性紀錄。
    """
    id: str
    symbol: str
    type: Optional[str]          # e.g. "DEAL_TYPE_BUY", "DEAL_TYPE_BALANCE"
    price: Decimal
    volume: Decimal              # 手數 (lots)
    profit: Decimal
    swap: Decimal
    commission: Decimal
    time: datetime               # 成交時間 (UTC)

    order_id: Optional[str] = None
    position_id: Optional[str] = None
    entry_type: Optional[str] = None
    broker_time: Optional[str] = None
    comment: Optional[str] = None

    @property
    def net_profit(self) -> Decimal:
        return metrics.net_profit(self)

    @property
    def is_trade_deal(self) -> bool:
        return metrics.is_trade_deal(self)

@dataclass(frozen=True)
class AggregatedReport:
    """
    一次報表的完整資料：帳戶快照 + 期間內的成交紀錄。
    所有統計數字都是 property，每次存取都從 deals 重新計算。
    """
    account: AccountSnapshot
    deals: Tuple[Deal, ...]
    generated_at: datetime
    period_start: datetime
    period_end: datetime

    @property
    def trading_deals(self) -> Tuple[Deal, ...]:
        return tuple(metrics.trading_deals(self.deals))

    @property
    def total_profit(self) -> Decimal:
        return metrics.total_profit(self.deals)

    @property
    def trade_count(self) -> int:
        return len(self.trading_deals)

    @property
    def winning_trades(self) -> int:
        return metrics.winning_trades(self.deals)

    @property
    def losing_trades(self) -> int:
        return metrics.losing_trades(self.deals)

    @property
    def win_rate(self) -> Decimal:
        return metrics.win_rate(self.deals)

    def summary(self) -> Dict[str, Any]:
        """Headline figures in a JSON-friendly shape, rounded like the rendered report."""
        stats = metrics.calculate_stats(self.deals)
        return {
            "balance": float(self.account.balance),
            "equity": float(self.account.equity),
            "currency": self.account.currency,
            "trade_count": stats["count"],
            "total_profit": stats["total_profit"],
            "win_rate": stats["win_rate"],
            "generated_at": self.generated_at.isoformat(),
        }
