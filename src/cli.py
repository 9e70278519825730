"""
Command-line interface for the checkout application.

Two modes:

* ``demo [balance]`` (default) builds the sample catalogue, fills a cart
  with cheese, biscuits and a TV and checks it out for a customer with
  the given balance.  It also shows that a scratch card cannot be added
  beyond its available quantity.
* ``shell`` starts an interactive session over the same catalogue.

Usage::

    python cli.py demo 2000
    python cli.py shell
"""

from __future__ import annotations

import sys
from typing import List, Optional

import logging_config
from cart import Cart
from checkout import CheckoutService, Receipt
from config import load_config
from customer import Customer
from errors import InvalidArgument
from products import NonPerishableProduct, PerishableProduct, Product

DEFAULT_DEMO_BALANCE = 2000.0


def sample_catalogue() -> List[Product]:
    """Return the products offered in the demo and the interactive shell."""
    return [
        PerishableProduct("Cheese", price=200.0, quantity=10, weight=400.0),
        PerishableProduct("Biscuits", price=150.0, quantity=5, weight=700.0),
        NonPerishableProduct("TV", price=1000.0, quantity=2, weight=5000.0),
        NonPerishableProduct("Mobile scratch card", price=50.0, quantity=20, weight=0.0),
    ]


def run_demo(balance: float = DEFAULT_DEMO_BALANCE, service: Optional[CheckoutService] = None) -> Optional[Receipt]:
    """Run the sample checkout and return the receipt, or None if it was rejected."""
    service = service or CheckoutService.from_config(load_config())
    cheese, biscuits, tv, scratch_card = sample_catalogue()
    customer = Customer("Ahmed", balance)

    cart = Cart()
    cart.add(cheese, 2)
    cart.add(biscuits, 1)
    cart.add(tv, 1)

    try:
        cart.add(scratch_card, 25)
    except InvalidArgument as e:
        print(f"Could not add to cart: {e}")

    try:
        receipt = service.process_checkout(customer, cart)
    except InvalidArgument as e:
        print(f"Checkout failed: {e}")
        return None
    print(f"Remaining balance: {customer.balance}")
    return receipt


def interactive_cli(service: Optional[CheckoutService] = None) -> None:
    """Interactive shop session: pick products, build a cart and check out."""
    service = service or CheckoutService.from_config(load_config())
    catalogue = sample_catalogue()
    name = input("Customer name: ").strip() or "Guest"
    try:
        balance = float(input("Balance: "))
    except ValueError:
        print("Please enter a valid amount.")
        return
    customer = Customer(name, balance)
    cart = Cart()

    def print_menu() -> None:
        print("\n-- Checkout --")
        print("1. List Products")
        print("2. Add Product to Cart")
        print("3. View Cart")
        print("4. Show Balance")
        print("5. Checkout")
        print("0. Exit")

    while True:
        print_menu()
        choice = input("Select an option: ").strip()
        if choice == "1":
            print("\nAvailable Products:")
            for idx, p in enumerate(catalogue, start=1):
                kind = "expired" if p.is_expired() else ("shipped" if p.requires_shipping() else "no shipping")
                print(f"{idx}. {p.name} - {p.price:.2f} (Stock: {p.quantity}, {kind})")
        elif choice == "2":
            try:
                idx = int(input("Enter product number: "))
                qty = int(input("Enter quantity: "))
            except ValueError:
                print("Please enter valid numeric values.")
                continue
            if not 1 <= idx <= len(catalogue):
                print("Product not found.")
                continue
            product = catalogue[idx - 1]
            try:
                cart.add(product, qty)
            except InvalidArgument as e:
                print(e)
                continue
            print(f"Added {qty} x {product.name} to cart")
        elif choice == "3":
            if cart.is_empty():
                print("Cart is empty.")
            else:
                print("\nCart Contents:")
                for line in cart.items():
                    print(f"{line.product.name} x {line.quantity} = {line.line_total:.2f}")
        elif choice == "4":
            print(f"Balance: {customer.balance}")
        elif choice == "5":
            try:
                service.process_checkout(customer, cart)
            except InvalidArgument as e:
                print(f"Checkout failed: {e}")
                continue
            cart.clear()
            print(f"Remaining balance: {customer.balance}")
        elif choice == "0":
            print("Exiting application.")
            break
        else:
            print("Invalid option. Please try again.")


def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    try:
        config = load_config()
    except InvalidArgument as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    logging_config.configure_logging(config.log_dir, config.log_level)
    service = CheckoutService.from_config(config)

    mode = args[0] if args else "demo"
    if mode == "demo":
        balance = DEFAULT_DEMO_BALANCE
        if len(args) > 1:
            try:
                balance = float(args[1])
            except ValueError:
                print(f"Invalid balance: {args[1]}", file=sys.stderr)
                return 2
        return 0 if run_demo(balance, service) is not None else 1
    if mode == "shell":
        interactive_cli(service)
        return 0
    print(f"Unknown mode {mode!r}; use 'demo [balance]' or 'shell'.", file=sys.stderr)
    return 2


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted by user. Exiting.")
        sys.exit(0)
