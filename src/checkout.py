"""
Checkout: validate a cart, charge the customer and print a receipt.

The checkout is a single validate-then-commit procedure:

1. Reject an empty cart.
2. For every cart line, reject expired products, then products whose
   catalogue quantity no longer covers the requested quantity.  The
   subtotal and the weight of shippable products are accumulated on the
   way.
3. Add the flat shipping fee once.
4. Reject the order if the customer's balance does not cover the amount.
5. Deduct the amount from the balance and print the receipt.

Every rejection raises :class:`errors.InvalidArgument` before anything
is mutated or printed, so a failed checkout never charges the customer
and never produces a partial receipt.

Known quirks of the receipt format, kept as-is:

* Shipment lines always read ``1x`` regardless of the purchased quantity.
* Item weights are labelled ``g`` while the package total is labelled
  ``kg`` although both use the same unit.
* Catalogue quantities are checked but never decremented.
"""

from __future__ import annotations

import logging
import math
import sys
from dataclasses import dataclass
from typing import List, Optional, TextIO, Tuple

from cart import Cart
from config import DEFAULT_SHIPPING_FEE, CheckoutConfig
from customer import Customer
from errors import InvalidArgument
from metrics import CHECKOUT_AMOUNT, CHECKOUT_ERROR_TOTAL, CHECKOUT_TOTAL

logger = logging.getLogger(__name__)

SHIPPING_FEE = DEFAULT_SHIPPING_FEE


@dataclass(frozen=True)
class ShipmentLine:
    """A shippable product on the shipment notice."""
    name: str
    weight: float


@dataclass(frozen=True)
class Receipt:
    """Outcome of a successful checkout."""
    customer_name: str
    shipments: Tuple[ShipmentLine, ...]
    total_weight: float
    subtotal: float
    shipping_fee: float
    amount: float
    balance_after: float

    def lines(self) -> List[str]:
        return format_receipt(self)

    def __str__(self) -> str:
        return "\n".join(self.lines())


def format_receipt(receipt: Receipt) -> List[str]:
    """Render the shipment notice and the checkout receipt as text lines."""
    lines = ["** Shipment notice **"]
    for shipment in receipt.shipments:
        lines.append(f"1x {shipment.name} {shipment.weight}g")
    lines.append(f"Total package weight {receipt.total_weight}kg")
    lines.append("** Checkout receipt **")
    lines.append(f"Subtotal: {receipt.subtotal}")
    lines.append(f"Shipping: {receipt.shipping_fee}")
    lines.append(f"Amount: {receipt.amount}")
    return lines


class CheckoutService:
    """
    Charges customers for the contents of their cart.

    The service only holds its configuration: the flat shipping fee and
    the stream receipts are printed to (``None`` prints to whatever
    ``sys.stdout`` is at the time).  Each checkout holds the customer's
    lock, so the balance check and the deduction for one customer cannot
    interleave, whichever service instance performs them.
    """

    def __init__(self, shipping_fee: float = SHIPPING_FEE, output: Optional[TextIO] = None) -> None:
        if not math.isfinite(shipping_fee) or shipping_fee < 0:
            raise InvalidArgument(f"Shipping fee must be a finite, non-negative number: {shipping_fee!r}")
        self.shipping_fee = shipping_fee
        self.output = output

    @classmethod
    def from_config(cls, config: CheckoutConfig, output: Optional[TextIO] = None) -> "CheckoutService":
        return cls(shipping_fee=config.shipping_fee, output=output)

    def _reject(self, kind: str, message: str, customer: Customer) -> InvalidArgument:
        CHECKOUT_TOTAL.inc(outcome="rejected")
        CHECKOUT_ERROR_TOTAL.inc(type=kind)
        logger.warning(
            "Checkout rejected: %s",
            message,
            extra={"customer": customer.name, "extra": {"reason": kind}},
        )
        return InvalidArgument(message)

    def process_checkout(self, customer: Customer, cart: Cart) -> Receipt:
        """Validate the cart, charge ``customer`` and print the receipt.

        :param customer: The paying customer.  Its balance is reduced by
            subtotal plus shipping fee on success and untouched otherwise.
        :param cart: The cart to check out.  It is not modified.
        :returns: The printed :class:`Receipt`.
        :raises InvalidArgument: for an empty cart, an expired product, a
            product with insufficient stock or an insufficient balance.
        """
        with customer.lock:
            if cart.is_empty():
                raise self._reject("empty_cart", "Cart is empty", customer)

            subtotal = 0.0
            total_weight = 0.0
            shipments: List[ShipmentLine] = []
            for line in cart.items():
                product = line.product
                if product.is_expired():
                    raise self._reject("expired", f"{product.name} is expired", customer)
                if product.quantity < line.quantity:
                    raise self._reject(
                        "out_of_stock",
                        f"{product.name} is out of stock: requested {line.quantity}, "
                        f"only {product.quantity} available",
                        customer,
                    )
                subtotal += line.line_total
                if product.requires_shipping():
                    total_weight += product.weight * line.quantity
                    shipments.append(ShipmentLine(name=product.name, weight=product.weight))

            amount = subtotal + self.shipping_fee
            if not customer.can_afford(amount):
                raise self._reject(
                    "insufficient_balance",
                    f"Insufficient balance: {customer.name} has {customer.balance}, order costs {amount}",
                    customer,
                )

            customer.deduct(amount)
            receipt = Receipt(
                customer_name=customer.name,
                shipments=tuple(shipments),
                total_weight=total_weight,
                subtotal=subtotal,
                shipping_fee=self.shipping_fee,
                amount=amount,
                balance_after=customer.balance,
            )

        CHECKOUT_TOTAL.inc(outcome="success")
        CHECKOUT_AMOUNT.observe(amount)
        logger.info(
            "Checkout completed",
            extra={
                "customer": customer.name,
                "extra": {"subtotal": subtotal, "amount": amount, "balance_after": receipt.balance_after},
            },
        )
        print(str(receipt), file=self.output if self.output is not None else sys.stdout)
        return receipt


def process_checkout(customer: Customer, cart: Cart, shipping_fee: float = SHIPPING_FEE) -> Receipt:
    """Check out ``cart`` for ``customer`` with a one-off :class:`CheckoutService`.

    Concurrent calls for the same customer are serialised on the
    customer's lock like any other checkout.
    """
    return CheckoutService(shipping_fee=shipping_fee).process_checkout(customer, cart)
