"""Top‑level package for the checkout application.

Products live in :mod:`products`, the cart in :mod:`cart`, customers in
:mod:`customer` and the checkout procedure with its receipt in
:mod:`checkout`.
"""
