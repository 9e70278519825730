"""Runtime configuration read from environment variables.

=========================  ==========  =====================================
Variable                   Default     Meaning
=========================  ==========  =====================================
``CHECKOUT_SHIPPING_FEE``  ``30.0``    Flat fee added once to every checkout
``CHECKOUT_LOG_DIR``       ``logs``    Directory for the rotating log file
``CHECKOUT_LOG_LEVEL``     ``INFO``    Root logger level name
=========================  ==========  =====================================
"""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from errors import InvalidArgument

DEFAULT_SHIPPING_FEE = 30.0
DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class CheckoutConfig:
    shipping_fee: float = DEFAULT_SHIPPING_FEE
    log_dir: str = DEFAULT_LOG_DIR
    log_level: int = logging.INFO


def _parse_fee(raw: str) -> float:
    try:
        fee = float(raw)
    except ValueError:
        raise InvalidArgument(f"CHECKOUT_SHIPPING_FEE is not a number: {raw!r}") from None
    if not math.isfinite(fee) or fee < 0:
        raise InvalidArgument(f"CHECKOUT_SHIPPING_FEE must be a finite, non-negative number: {raw!r}")
    return fee


def _parse_level(raw: str) -> int:
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise InvalidArgument(f"CHECKOUT_LOG_LEVEL is not a logging level: {raw!r}")
    return level


def load_config(environ: Optional[Mapping[str, str]] = None) -> CheckoutConfig:
    """Build a :class:`CheckoutConfig` from ``environ`` (default ``os.environ``).

    :raises InvalidArgument: if a variable is set to an unusable value.
    """
    env = os.environ if environ is None else environ
    return CheckoutConfig(
        shipping_fee=_parse_fee(env.get("CHECKOUT_SHIPPING_FEE", str(DEFAULT_SHIPPING_FEE))),
        log_dir=env.get("CHECKOUT_LOG_DIR", DEFAULT_LOG_DIR),
        log_level=_parse_level(env.get("CHECKOUT_LOG_LEVEL", DEFAULT_LOG_LEVEL)),
    )
