# --- path/bootstrap (keep this at the very top) ---
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
# --- end path/bootstrap ---

import contextlib
import io
import threading
import unittest

from cart import Cart
from checkout import SHIPPING_FEE, CheckoutService, Receipt, ShipmentLine, format_receipt, process_checkout
from customer import Customer
from errors import InvalidArgument
from metrics import CHECKOUT_AMOUNT, CHECKOUT_ERROR_TOTAL, CHECKOUT_TOTAL, reset_metrics
from products import NonPerishableProduct, PerishableProduct


class CheckoutTestCase(unittest.TestCase):
    """Shared catalogue: cheese, biscuits and a TV."""

    def setUp(self):
        reset_metrics()
        self.out = io.StringIO()
        self.service = CheckoutService(output=self.out)
        self.cheese = PerishableProduct("Cheese", price=200.0, quantity=10, weight=400.0)
        self.biscuits = PerishableProduct("Biscuits", price=150.0, quantity=5, weight=700.0)
        self.tv = NonPerishableProduct("TV", price=1000.0, quantity=2, weight=5000.0)

    def full_cart(self) -> Cart:
        cart = Cart()
        cart.add(self.cheese, 2)
        cart.add(self.biscuits, 1)
        cart.add(self.tv, 1)
        return cart

    def assertRejected(self, customer, cart, fragment):
        before = customer.balance
        with self.assertRaises(InvalidArgument) as ctx:
            self.service.process_checkout(customer, cart)
        self.assertIn(fragment, str(ctx.exception).lower())
        self.assertEqual(customer.balance, before)
        self.assertEqual(self.out.getvalue(), "")
        return ctx.exception


class TestCheckoutScenarios(CheckoutTestCase):

    def test_successful_checkout(self):
        customer = Customer("Ahmed", 2000.0)
        receipt = self.service.process_checkout(customer, self.full_cart())

        self.assertEqual(customer.balance, 420.0)
        self.assertEqual(receipt.subtotal, 1550.0)
        self.assertEqual(receipt.shipping_fee, 30.0)
        self.assertEqual(receipt.amount, 1580.0)
        self.assertEqual(receipt.total_weight, 1500.0)
        self.assertEqual(receipt.balance_after, 420.0)
        self.assertEqual([s.name for s in receipt.shipments], ["Cheese", "Biscuits"])

    def test_receipt_is_printed_verbatim(self):
        self.service.process_checkout(Customer("Ahmed", 2000.0), self.full_cart())
        self.assertEqual(
            self.out.getvalue(),
            "** Shipment notice **\n"
            "1x Cheese 400.0g\n"
            "1x Biscuits 700.0g\n"
            "Total package weight 1500.0kg\n"
            "** Checkout receipt **\n"
            "Subtotal: 1550.0\n"
            "Shipping: 30.0\n"
            "Amount: 1580.0\n",
        )

    def test_insufficient_balance(self):
        customer = Customer("Ahmed", 500.0)
        self.assertRejected(customer, self.full_cart(), "insufficient balance")
        self.assertEqual(customer.balance, 500.0)
        self.assertEqual(CHECKOUT_ERROR_TOTAL.value(type="insufficient_balance"), 1)

    def test_balance_exactly_covering_total_succeeds(self):
        customer = Customer("Ahmed", 1580.0)
        self.service.process_checkout(customer, self.full_cart())
        self.assertEqual(customer.balance, 0.0)

    def test_empty_cart_rejected_regardless_of_balance(self):
        customer = Customer("Rich", 1_000_000.0)
        self.assertRejected(customer, Cart(), "empty")
        self.assertEqual(CHECKOUT_ERROR_TOTAL.value(type="empty_cart"), 1)

    def test_expired_product_rejected(self):
        stale = PerishableProduct("Milk", price=20.0, quantity=3, weight=1000.0, expired=True)
        cart = self.full_cart()
        cart.add(stale, 1)
        self.assertRejected(Customer("Ahmed", 5000.0), cart, "expired")
        self.assertEqual(CHECKOUT_ERROR_TOTAL.value(type="expired"), 1)

    def test_expiry_checked_before_stock_for_same_item(self):
        stale = PerishableProduct("Milk", price=20.0, quantity=3, weight=1000.0, expired=True)
        cart = Cart()
        cart.add(stale, 3)
        # Catalogue quantity drops to zero after the add
        object.__setattr__(stale, "quantity", 0)
        self.assertRejected(Customer("Ahmed", 5000.0), cart, "expired")

    def test_stock_rechecked_at_checkout(self):
        cart = Cart()
        cart.add(self.biscuits, 5)
        object.__setattr__(self.biscuits, "quantity", 4)
        self.assertRejected(Customer("Ahmed", 5000.0), cart, "out of stock")
        self.assertEqual(CHECKOUT_ERROR_TOTAL.value(type="out_of_stock"), 1)

    def test_item_checks_precede_balance_check(self):
        stale = PerishableProduct("Milk", price=20.0, quantity=3, weight=1000.0, expired=True)
        cart = Cart()
        cart.add(stale, 1)
        self.assertRejected(Customer("Broke", 0.0), cart, "expired")

    def test_checkout_does_not_decrement_stock_or_clear_cart(self):
        cart = self.full_cart()
        self.service.process_checkout(Customer("Ahmed", 2000.0), cart)
        self.assertEqual(self.cheese.quantity, 10)
        self.assertEqual(len(cart), 3)


class TestShippingFee(CheckoutTestCase):

    def test_fee_applied_once_for_non_shippable_cart(self):
        cart = Cart()
        cart.add(self.tv, 2)
        customer = Customer("Ahmed", 3000.0)
        receipt = self.service.process_checkout(customer, cart)
        self.assertEqual(receipt.amount, 2030.0)
        self.assertEqual(customer.balance, 970.0)
        self.assertEqual(receipt.shipments, ())
        self.assertEqual(receipt.total_weight, 0.0)
        self.assertIn("Total package weight 0.0kg", self.out.getvalue())

    def test_fee_independent_of_item_count(self):
        cart = Cart()
        cart.add(self.cheese, 10)
        cart.add(self.biscuits, 5)
        receipt = self.service.process_checkout(Customer("Ahmed", 10_000.0), cart)
        self.assertEqual(receipt.amount, receipt.subtotal + SHIPPING_FEE)

    def test_injected_fee(self):
        service = CheckoutService(shipping_fee=5.0, output=self.out)
        cart = Cart()
        cart.add(self.cheese, 1)
        customer = Customer("Ahmed", 300.0)
        receipt = service.process_checkout(customer, cart)
        self.assertEqual(receipt.amount, 205.0)
        self.assertEqual(customer.balance, 95.0)
        self.assertIn("Shipping: 5.0", self.out.getvalue())

    def test_negative_fee_rejected(self):
        with self.assertRaises(InvalidArgument):
            CheckoutService(shipping_fee=-1.0)

    def test_non_finite_fee_rejected(self):
        for fee in (float("nan"), float("inf")):
            with self.subTest(fee=fee):
                with self.assertRaises(InvalidArgument):
                    CheckoutService(shipping_fee=fee)

    def test_shipment_line_ignores_quantity(self):
        cart = Cart()
        cart.add(self.cheese, 3)
        receipt = self.service.process_checkout(Customer("Ahmed", 1000.0), cart)
        self.assertEqual(receipt.total_weight, 1200.0)
        self.assertIn("1x Cheese 400.0g", self.out.getvalue())


class TestReceiptFormatting(unittest.TestCase):

    def test_format_receipt_lines(self):
        receipt = Receipt(
            customer_name="Ahmed",
            shipments=(ShipmentLine("Cheese", 400.0),),
            total_weight=800.0,
            subtotal=400.0,
            shipping_fee=30.0,
            amount=430.0,
            balance_after=70.0,
        )
        self.assertEqual(
            format_receipt(receipt),
            [
                "** Shipment notice **",
                "1x Cheese 400.0g",
                "Total package weight 800.0kg",
                "** Checkout receipt **",
                "Subtotal: 400.0",
                "Shipping: 30.0",
                "Amount: 430.0",
            ],
        )
        self.assertEqual(str(receipt), "\n".join(receipt.lines()))


class TestModuleLevelCheckout(CheckoutTestCase):

    def test_prints_to_stdout_with_default_fee(self):
        cart = Cart()
        cart.add(self.cheese, 1)
        customer = Customer("Ahmed", 500.0)
        buf = io.StringIO()
        with contextlib.redirect_stdout(buf):
            receipt = process_checkout(customer, cart)
        self.assertEqual(receipt.amount, 230.0)
        self.assertEqual(customer.balance, 270.0)
        self.assertTrue(buf.getvalue().startswith("** Shipment notice **\n"))


class TestCheckoutMetricsAndLogging(CheckoutTestCase):

    def test_success_records_metrics_and_logs(self):
        with self.assertLogs("checkout", level="INFO") as logs:
            self.service.process_checkout(Customer("Ahmed", 2000.0), self.full_cart())
        self.assertIn("Checkout completed", logs.output[0])
        self.assertEqual(CHECKOUT_TOTAL.value(outcome="success"), 1)
        self.assertEqual(CHECKOUT_AMOUNT.count(), 1)

    def test_rejection_logs_warning(self):
        with self.assertLogs("checkout", level="WARNING") as logs:
            with self.assertRaises(InvalidArgument):
                self.service.process_checkout(Customer("Ahmed", 0.0), Cart())
        self.assertIn("Checkout rejected", logs.output[0])
        self.assertEqual(CHECKOUT_TOTAL.value(outcome="rejected"), 1)


class TestConcurrentCheckout(CheckoutTestCase):

    def test_shared_customer_charged_at_most_affordable_times(self):
        customer = Customer("Ahmed", 500.0)
        results = []

        def attempt():
            cart = Cart()
            cart.add(self.cheese, 2)  # 400 + 30 shipping
            try:
                self.service.process_checkout(customer, cart)
                results.append(True)
            except InvalidArgument:
                results.append(False)

        threads = [threading.Thread(target=attempt) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(results.count(True), 1)
        self.assertEqual(customer.balance, 70.0)

    def test_separate_services_share_the_customer_lock(self):
        customer = Customer("Ahmed", 500.0)
        results = []

        def attempt(use_module_function):
            cart = Cart()
            cart.add(self.cheese, 2)
            try:
                if use_module_function:
                    process_checkout(customer, cart)
                else:
                    CheckoutService(output=io.StringIO()).process_checkout(customer, cart)
                results.append(True)
            except InvalidArgument:
                results.append(False)

        threads = [threading.Thread(target=attempt, args=(i % 2 == 0,)) for i in range(8)]
        with contextlib.redirect_stdout(io.StringIO()):
            for t in threads:
                t.start()
            for t in threads:
                t.join()

        self.assertEqual(results.count(True), 1)
        self.assertEqual(customer.balance, 70.0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
