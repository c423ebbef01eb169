# validation.py
from config import (
    ALLOCATION_TOLERANCE,
    ALLOCATION_TOTAL,
    ASSETS,
    CURRENT_PRICE_RANGE,
    NUM_SIMS_RANGE,
    PROJECTION_INPUT_RULES,
    VOLATILITY_RANGE,
)


def clamp_input(name, value):
    """Clamp ``value`` to the rule for ``name`` and explain any change.

    Missing or non-numeric values fall back to the rule's default. Returns
    ``(value, message)`` where ``message`` is ``None`` if nothing changed.
    """
    lo, hi, default = PROJECTION_INPUT_RULES[name]
    try:
        value = float(value)
    except (TypeError, ValueError):
        return default, f"Invalid input, reset to {default}"
    if value != value:
        return default, f"Invalid input, reset to {default}"
    if value < lo:
        return lo, f"Minimum value is {lo}"
    if value > hi:
        return hi, f"Maximum value is {hi}"
    return value, None


def clamp_num_sims(num_sims):
    """Bound the number of simulations to the supported range"""
    return int(max(NUM_SIMS_RANGE[0], min(int(num_sims), NUM_SIMS_RANGE[1])))


def validate_simulation_inputs(current_price, volatility, num_sims):
    """Validate simulator inputs and return any errors found.

    ``volatility`` is a percentage.
    """
    errors = []

    if not CURRENT_PRICE_RANGE[0] <= current_price <= CURRENT_PRICE_RANGE[1]:
        errors.append(
            f"Current price must be between {CURRENT_PRICE_RANGE[0]:,.0f} and {CURRENT_PRICE_RANGE[1]:,.0f}"
        )

    if not VOLATILITY_RANGE[0] <= volatility <= VOLATILITY_RANGE[1]:
        errors.append(
            f"Volatility must be between {VOLATILITY_RANGE[0]:.0f}% and {VOLATILITY_RANGE[1]:.0f}%"
        )

    if not NUM_SIMS_RANGE[0] <= num_sims <= NUM_SIMS_RANGE[1]:
        errors.append(
            f"Number of simulations must be between {NUM_SIMS_RANGE[0]:,} and {NUM_SIMS_RANGE[1]:,}"
        )

    return errors


def validate_allocation(percentages):
    """Validate portfolio allocation percentages keyed by asset"""
    errors = []

    for asset in ASSETS:
        if percentages.get(asset, 0.0) < 0:
            errors.append(f"{asset.upper()} allocation cannot be negative")

    total = sum(percentages.get(asset, 0.0) for asset in ASSETS)
    if abs(total - ALLOCATION_TOTAL) > ALLOCATION_TOLERANCE:
        errors.append(f"Allocations total {total:.1f}% - must equal {ALLOCATION_TOTAL:.0f}%")

    return errors


def validate_projection_inputs(inputs):
    """Validate real estate vs Bitcoin calculator inputs and return any errors found"""
    errors = []

    for name, (lo, hi, _default) in PROJECTION_INPUT_RULES.items():
        if name not in inputs or name.endswith("_allocation"):
            continue
        value = inputs[name]
        if not lo <= value <= hi:
            label = name.replace("_", " ").capitalize()
            errors.append(f"{label} must be between {lo:,g} and {hi:,g}")

    if inputs.get("down_payment", 0) > inputs.get("property_price", float("inf")):
        errors.append("Down payment cannot exceed property price")

    horizon = inputs.get("time_horizon")
    if horizon is not None and int(horizon) != horizon:
        errors.append("Time horizon must be a whole number of years")

    allocation = {
        asset: inputs[f"{asset}_allocation"]
        for asset in ASSETS
        if f"{asset}_allocation" in inputs
    }
    if allocation:
        errors.extend(validate_allocation(allocation))

    return errors
