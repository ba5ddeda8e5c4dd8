"""Value-transfer collaborators for registration fees.

The registry only needs ``transfer(amount, sender, recipient) -> bool``.
Two local implementations are provided:

- ``TransferLog`` accepts every request and records it.
- ``BalanceLedger`` keeps per-identity balances and refuses transfers the
  sender cannot cover.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ValueTransfer(Protocol):
    def transfer(self, amount: int, sender: str, recipient: str) -> bool:
        ...


@dataclass(frozen=True)
class TransferRecord:
    amount: int
    sender: str
    recipient: str


class TransferLog:
    """Records every transfer request and always reports success."""

    def __init__(self, records: Optional[list[TransferRecord]] = None) -> None:
        self.records: list[TransferRecord] = list(records or [])

    def transfer(self, amount: int, sender: str, recipient: str) -> bool:
        self.records.append(TransferRecord(amount=amount, sender=sender, recipient=recipient))
        logger.debug("Transfer of %d from %s to %s recorded", amount, sender, recipient)
        return True


class BalanceLedger(TransferLog):
    """Balance-tracking transfer collaborator.

    Unknown identities hold a zero balance. A transfer fails, leaving all
    balances untouched, when the sender's balance is below *amount*.
    """

    def __init__(
        self,
        balances: Optional[dict[str, int]] = None,
        records: Optional[list[TransferRecord]] = None,
    ) -> None:
        super().__init__(records)
        self.balances: dict[str, int] = dict(balances or {})

    def balance_of(self, identity: str) -> int:
        return self.balances.get(identity, 0)

    def credit(self, identity: str, amount: int) -> None:
        if amount < 0:
            raise ValueError("credit amount must not be negative")
        self.balances[identity] = self.balance_of(identity) + amount

    def transfer(self, amount: int, sender: str, recipient: str) -> bool:
        if amount < 0 or self.balance_of(sender) < amount:
            logger.debug(
                "Transfer of %d from %s refused (balance %d)",
                amount,
                sender,
                self.balance_of(sender),
            )
            return False
        self.balances[sender] = self.balance_of(sender) - amount
        self.balances[recipient] = self.balance_of(recipient) + amount
        return super().transfer(amount, sender, recipient)
