"""Shop customer holding a spendable balance."""

from __future__ import annotations

import threading


class Customer:
    """A named customer with a mutable balance.

    The balance only changes through :meth:`deduct`, which the checkout
    calls after it has verified the customer can afford the order.  The
    checkout holds :attr:`lock` for the whole check-then-deduct sequence.
    """

    def __init__(self, name: str, balance: float) -> None:
        self.name = name
        self._balance = balance
        self.lock = threading.Lock()

    @property
    def balance(self) -> float:
        return self._balance

    def can_afford(self, amount: float) -> bool:
        return self._balance >= amount

    def deduct(self, amount: float) -> None:
        """Subtract ``amount`` from the balance.

        No sufficiency check happens here; callers must check first.
        """
        self._balance -= amount

    def __repr__(self) -> str:
        return f"Customer(name={self.name!r}, balance={self._balance!r})"
