"""Exceptions raised by the checkout application."""


class InvalidArgument(ValueError):
    """Raised when an input violates a precondition of the checkout flow.

    Covers every business rule: adding more than the available stock to a
    cart, checking out an empty cart, expired or out-of-stock products at
    checkout time and insufficient customer balance.  The message is meant
    to be shown to the user as-is.
    """

    pass
