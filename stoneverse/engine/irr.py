"""IRR computation using scipy.

Newton-Raphson from a 10% guess first; when it fails to converge or lands
outside the plausible range, Brent's method searches [-99%, 1000%].

Pure functions. No I/O.
"""

import logging
import math
from decimal import Decimal, ROUND_HALF_UP

from scipy.optimize import brentq, newton

logger = logging.getLogger(__name__)

FOUR_PLACES = Decimal("0.0001")

INITIAL_GUESS = 0.1
MAX_ITERATIONS = 100
TOLERANCE = 1e-4
LOWER_BOUND = -0.99
UPPER_BOUND = 10.0


class _Diverged(ArithmeticError):
    """Newton stepped outside [LOWER_BOUND, UPPER_BOUND]."""


def npv(rate: Decimal, cash_flows: list[Decimal]) -> Decimal:
    """Net present value, cash_flows[0] at t=0."""
    return sum(
        (cf / (1 + rate) ** t for t, cf in enumerate(cash_flows)),
        Decimal("0"),
    )


def _has_sign_change(cash_flows: list[float]) -> bool:
    return any(cf > 0 for cf in cash_flows) and any(cf < 0 for cf in cash_flows)


def compute_irr(cash_flows: list[Decimal]) -> Decimal:
    """Compute IRR from a vector of annual cash flows.

    cash_flows[0] is usually negative (initial investment).
    Returns 0 when no rate solves NPV = 0.
    """
    if not cash_flows or len(cash_flows) < 2:
        return Decimal("0")

    # Convert to float for scipy
    cf_float = [float(cf) for cf in cash_flows]
    if not _has_sign_change(cf_float):
        return Decimal("0")

    def f(rate: float) -> float:
        rate = float(rate)
        if not LOWER_BOUND <= rate <= UPPER_BOUND:
            raise _Diverged(rate)
        return sum(cf / (1 + rate) ** t for t, cf in enumerate(cf_float))

    def f_prime(rate: float) -> float:
        rate = float(rate)
        return sum(-t * cf / (1 + rate) ** (t + 1) for t, cf in enumerate(cf_float))

    try:
        irr = newton(f, INITIAL_GUESS, fprime=f_prime, tol=TOLERANCE, maxiter=MAX_ITERATIONS)
        if math.isfinite(irr) and LOWER_BOUND <= irr <= UPPER_BOUND:
            return Decimal(str(irr)).quantize(FOUR_PLACES, ROUND_HALF_UP)
        logger.debug("Newton IRR %s outside bounds, bracketing", irr)
    except _Diverged as e:
        logger.debug("Newton IRR stepped outside bounds (%s), bracketing", e)
    except (RuntimeError, ZeroDivisionError, OverflowError) as e:
        logger.debug("Newton IRR did not converge (%s), bracketing", e)

    try:
        irr = brentq(f, LOWER_BOUND, UPPER_BOUND, xtol=1e-8, maxiter=1000)
        return Decimal(str(irr)).quantize(FOUR_PLACES, ROUND_HALF_UP)
    except (ValueError, RuntimeError):
        # No sign change inside the bracket
        logger.warning("IRR undetermined for %d cash flows", len(cf_float))
        return Decimal("0")


def compute_equity_multiple(
    total_cash_returned: Decimal, total_cash_invested: Decimal
) -> Decimal:
    """Equity multiple = total cash out / total cash in."""
    if total_cash_invested == 0:
        return Decimal("0")
    return (total_cash_returned / total_cash_invested).quantize(FOUR_PLACES, ROUND_HALF_UP)
