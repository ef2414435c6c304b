from abc import ABC, abstractmethod
from datetime import datetime
from threading import Event
from typing import List, Optional, Sequence

from metareport.core.models import AccountSnapshot, Deal

class AccountDataSource(ABC):
    """
    Read-only access to one brokerage account.
    The report builder only depends on this interface, so the MetaAPI
    client can be swapped for a test double.
    """

    @abstractmethod
    def fetch_account(self, cancel_event: Optional[Event] = None) -> AccountSnapshot:
        """
        Fetches the current account snapshot.

        Args:
            cancel_event: Set by the caller to abort the fetch and any pending retry.
        """
        pass

    @abstractmethod
    def fetch_deals(self, start_time: datetime, end_time: datetime,
                    cancel_event: Optional[Event] = None) -> List[Deal]:
        """
        Fetches the deal history for [start_time, end_time], both inclusive.

        Args:
            start_time: Period start (UTC).
            end_time: Period end (UTC), never earlier than start_time.
            cancel_event: Set by the caller to abort the fetch and any pending retry.

        Returns:
            Deals in upstream order. Empty when the account had no activity.
        """
        pass

class ReportSender(ABC):
    """Delivery channel for a rendered report."""

    @abstractmethod
    def send(self, subject: str, plain_text: str, html: str, recipients: Sequence[str]) -> bool:
        """
        Sends one report.

        Returns:
            True when the channel accepted the message.
        """
        pass
