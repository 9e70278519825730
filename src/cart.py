"""Shopping cart keyed by product identity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List
import logging

from errors import InvalidArgument
from metrics import CART_REJECTED_TOTAL
from products import NonPerishableProduct, PerishableProduct, Product

logger = logging.getLogger(__name__)


@dataclass
class CartLine:
    """A line in the shopping cart."""
    product: Product
    quantity: int

    @property
    def line_total(self) -> float:
        return self.product.price * self.quantity


class Cart:
    """
    Mapping of product -> requested quantity for a single transaction.

    Adding a product that is already in the cart replaces its quantity
    (last write wins).  The stock check in :meth:`add` only reads the
    catalogue snapshot; nothing is reserved and the product is never
    modified.
    """

    def __init__(self) -> None:
        # Products hash by identity, so equal-looking products stay separate
        self._lines: Dict[Product, CartLine] = {}

    def add(self, product: Product, quantity: int) -> None:
        """Put ``quantity`` units of ``product`` in the cart.

        :raises InvalidArgument: if ``product`` is not one of the two product
            variants, or the quantity is not a positive integer or exceeds
            the product's available quantity.  The cart is left unchanged.
        """
        if not isinstance(product, (PerishableProduct, NonPerishableProduct)):
            CART_REJECTED_TOTAL.inc(reason="invalid_product")
            raise InvalidArgument(f"Cannot add {product!r} to the cart: not a perishable or non-perishable product")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            CART_REJECTED_TOTAL.inc(reason="invalid_quantity")
            logger.warning(
                "Rejected cart addition",
                extra={"extra": {"product": product.name, "quantity": repr(quantity)}},
            )
            raise InvalidArgument(f"Quantity must be a positive whole number, got {quantity!r}")
        if quantity > product.quantity:
            CART_REJECTED_TOTAL.inc(reason="out_of_stock")
            logger.warning(
                "Rejected cart addition",
                extra={"extra": {"product": product.name, "quantity": quantity, "available": product.quantity}},
            )
            raise InvalidArgument(
                f"{product.name} is out of stock: requested {quantity}, only {product.quantity} available"
            )

        line = self._lines.get(product)
        if line is None:
            self._lines[product] = CartLine(product=product, quantity=quantity)
        else:
            line.quantity = quantity
        logger.debug("Added %d x %s to cart", quantity, product.name)

    def remove(self, product: Product) -> None:
        self._lines.pop(product, None)

    def clear(self) -> None:
        self._lines.clear()

    def items(self) -> List[CartLine]:
        """Return the cart lines in the order products were first added."""
        return list(self._lines.values())

    def quantity_of(self, product: Product) -> int:
        line = self._lines.get(product)
        return line.quantity if line else 0

    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, product: object) -> bool:
        return product in self._lines
