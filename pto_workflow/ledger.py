from __future__ import annotations
from dataclasses import replace
from typing import Optional

from .core.logging import get_logger
from .models import BalanceSnapshot, EmployeeBalance
from .storage import RequestStore

logger = get_logger(__name__)


class BalanceLedger:
    """Reads and updates employee PTO balances held by a store.

    Unknown employees are not an error here: reads fall back to an empty
    balance and writes are skipped with a log line.
    """

    def __init__(self, store: RequestStore) -> None:
        self.store = store

    def find(self, employee_id: str) -> Optional[EmployeeBalance]:
        return self.store.get_employee(employee_id)

    def get_balance(self, employee_id: str) -> BalanceSnapshot:
        balance = self.find(employee_id)
        if balance is None:
            logger.info("balance_not_found", employee_id=employee_id)
            return BalanceSnapshot()
        return BalanceSnapshot(used_hours=balance.used_hours, remaining_hours=balance.remaining_hours)

    def get_email(self, employee_id: str) -> Optional[str]:
        balance = self.find(employee_id)
        if balance is None or not balance.email:
            return None
        return balance.email

    def has_sufficient_balance(self, employee_id: str, hours_requested: Optional[float]) -> bool:
        if hours_requested is None or self.find(employee_id) is None:
            return False
        return self.get_balance(employee_id).remaining_hours >= hours_requested

    def deducted(self, employee_id: str, hours_requested: Optional[float]) -> Optional[EmployeeBalance]:
        """Return the balance row with approved hours moved to used, without storing it.

        ``None`` when there is nothing to deduct or no row for the employee.
        """

        if hours_requested is None or hours_requested <= 0:
            logger.warning("approval_hours_invalid", employee_id=employee_id, hours=hours_requested)
            return None
        balance = self.find(employee_id)
        if balance is None:
            logger.warning("approval_employee_not_found", employee_id=employee_id, hours=hours_requested)
            return None
        return replace(
            balance,
            used_hours=balance.used_hours + hours_requested,
            remaining_hours=balance.remaining_hours - hours_requested,
        )

    def apply_approval(self, employee_id: str, hours_requested: Optional[float]) -> bool:
        """Move approved hours from remaining to used. Returns whether it applied."""

        balance = self.deducted(employee_id, hours_requested)
        if balance is None:
            return False
        self.store.save_employee(balance)
        logger.info(
            "balance_updated",
            employee_id=employee_id,
            hours=hours_requested,
            used_hours=balance.used_hours,
            remaining_hours=balance.remaining_hours,
        )
        return True
