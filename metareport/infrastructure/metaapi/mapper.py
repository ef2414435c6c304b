from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional
from metareport.core.exceptions import MalformedResponseError
from metareport.core.models import AccountSnapshot, Deal

class MetaApiMapper:
    """
    負責將 MetaAPI 的原始 JSON 資料轉換為核心 Domain Models。
    欄位缺漏或格式錯誤一律丟出 MalformedResponseError。
    """

    @staticmethod
    def to_account_snapshot(raw: Any) -> AccountSnapshot:
        """將 account-information 回應轉為 AccountSnapshot 物件。"""
        if not isinstance(raw, dict):
            raise MalformedResponseError(f"Expected an object for account information, got {type(raw).__name__}")

        margin_level = raw.get("marginLevel")
        try:
            leverage = int(raw.get("leverage", 0))
        except (TypeError, ValueError, OverflowError):
            raise MalformedResponseError(f"Invalid leverage: {raw.get('leverage')!r}")

        return AccountSnapshot(
            balance=_decimal(raw, "balance"),
            equity=_decimal(raw, "equity"),
            margin=_decimal(raw, "margin"),
            free_margin=_decimal(raw, "freeMargin"),
            leverage=leverage,
            margin_level=_decimal(raw, "marginLevel") if margin_level is not None else None,
            currency=str(raw.get("currency") or ""),
            broker=str(raw.get("broker") or ""),
            server=str(raw.get("server") or ""),
            name=str(raw.get("name") or ""),
            login=str(raw.get("login") or ""),  # MT4 回傳數字，MT5 可能是字串
            platform=str(raw.get("platform") or ""),
        )

    @staticmethod
    def to_deal(raw: Any) -> Deal:
        """將 history-deals 的單筆紀錄轉為 Deal 物件。"""
        if not isinstance(raw, dict):
            raise MalformedResponseError(f"Expected an object for deal, got {type(raw).__name__}")
        if raw.get("id") is None:
            raise MalformedResponseError("Deal without id")

        return Deal(
            id=str(raw["id"]),
            order_id=_optional_str(raw.get("orderId")),
            position_id=_optional_str(raw.get("positionId")),
            symbol=str(raw.get("symbol") or ""),
            type=_optional_str(raw.get("type")),
            entry_type=_optional_str(raw.get("entryType")),
            price=_decimal(raw, "price"),
            volume=_decimal(raw, "volume"),
            profit=_decimal(raw, "profit"),
            swap=_decimal(raw, "swap"),
            commission=_decimal(raw, "commission"),
            time=parse_utc(raw.get("time")),
            broker_time=_optional_str(raw.get("brokerTime")),
            comment=_optional_str(raw.get("comment")),
        )

def parse_utc(value: Any) -> datetime:
    """ISO 8601 字串轉為 UTC aware datetime，沒有時區資訊時視為 UTC。"""
    if not isinstance(value, str) or not value:
        raise MalformedResponseError(f"Invalid deal time: {value!r}")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise MalformedResponseError(f"Invalid deal time: {value!r}")
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)

def format_utc(value: datetime) -> str:
    """yyyy-MM-ddTHH:mm:ss.fffZ，MetaAPI 路徑參數使用的格式。"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"

def _decimal(raw: Dict[str, Any], key: str) -> Decimal:
    value = raw.get(key)
    if value is None:
        return Decimal("0")
    if isinstance(value, bool):
        raise MalformedResponseError(f"Invalid number for {key}: {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        raise MalformedResponseError(f"Invalid number for {key}: {value!r}")
    # json.loads accepts NaN / Infinity
    if not result.is_finite():
        raise MalformedResponseError(f"Invalid number for {key}: {value!r}")
    return result

def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)
