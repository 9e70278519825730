"""Catalogue entries sold by the shop.

Two kinds of product exist:

* :class:`PerishableProduct` - may expire and always has to be shipped.
* :class:`NonPerishableProduct` - never expires and is never shipped.

Products are read-only catalogue snapshots.  They compare and hash by
identity, so two products with the same fields are still different
entries in a :class:`cart.Cart`.
"""

from __future__ import annotations

from dataclasses import dataclass

from errors import InvalidArgument


@dataclass(frozen=True, eq=False)
class Product:
    """Fields shared by every product variant.

    :param name: Display name used on the receipt.
    :param price: Unit price.
    :param quantity: Quantity available in the catalogue.  It is a
        snapshot: neither adding to a cart nor checking out decrements it.
    :param weight: Weight of a single unit.
    """
    name: str
    price: float
    quantity: int
    weight: float

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidArgument("Product name must not be empty")
        if self.price < 0:
            raise InvalidArgument(f"Price of {self.name} must not be negative")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise InvalidArgument(f"Quantity of {self.name} must be a whole number")
        if self.quantity < 0:
            raise InvalidArgument(f"Quantity of {self.name} must not be negative")
        if self.weight < 0:
            raise InvalidArgument(f"Weight of {self.name} must not be negative")

    def is_expired(self) -> bool:
        raise NotImplementedError

    def requires_shipping(self) -> bool:
        raise NotImplementedError


@dataclass(frozen=True, eq=False)
class PerishableProduct(Product):
    """A product that can expire (cheese, biscuits).  Always shipped."""
    expired: bool = False

    def is_expired(self) -> bool:
        return self.expired

    def requires_shipping(self) -> bool:
        return True


@dataclass(frozen=True, eq=False)
class NonPerishableProduct(Product):
    """A product that never expires and is never shipped (TV, scratch card)."""

    def is_expired(self) -> bool:
        return False

    def requires_shipping(self) -> bool:
        return False
