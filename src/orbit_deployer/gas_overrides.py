#!/usr/bin/env python3
"""Gas limit overrides.

A caller may pin the gas limit base (skipping RPC estimation entirely) and/or
pad it by an integer percentage. All arithmetic stays in integers so the
resulting limit is exactly reproducible.
"""

import logging

from .errors import MissingGasBase
from .models import GasOverrides

logger = logging.getLogger(__name__)


def apply_percent_increase(base: int, percent_increase: int) -> int:
    """Return ``base + floor(base * percent_increase / 100)``."""
    return base + (base * percent_increase) // 100


def estimation_gas_hint(gas_overrides: GasOverrides | None) -> int | None:
    """Gas to request from the estimation step.

    ``0`` tells ``prepare_transaction_request`` to skip estimation because the
    override base replaces it afterwards; ``None`` asks for an estimate.
    """
    if gas_overrides is not None and gas_overrides.base is not None:
        return 0
    return None


def resolve_gas_limit(estimated: int | None, gas_overrides: GasOverrides, to: str = "") -> int:
    """Apply ``gas_overrides`` to an estimated gas amount.

    Args:
        estimated: Gas returned by estimation, None or 0 when it was skipped
        gas_overrides: Override base and percent increase
        to: Transaction target, used in the error message

    Raises:
        MissingGasBase: If there is neither an override base nor an estimate
    """
    if gas_overrides.base is not None:
        base = gas_overrides.base
    elif estimated:
        base = estimated
    else:
        raise MissingGasBase(to)

    gas = apply_percent_increase(base, gas_overrides.percent_increase)
    logger.debug(
        f"Gas limit {gas} (base {base}{' override' if gas_overrides.base is not None else ''}, "
        f"+{gas_overrides.percent_increase}%)"
    )
    return gas
