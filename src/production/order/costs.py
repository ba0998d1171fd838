"""Estimated cost of an order.

Items are priced per thousand units; the remaining lines are flat fees
taken from the cost configuration. Amounts are rounded to cents.
"""

from production.errors import InvalidRequest

DEFAULT_COST_CONFIG = {
    "shipping_cost": 500.0,
    "handling_cost": 200.0,
    "tax_rate": 0.18,
    "insurance": 100.0,
    "expedited_shipping": 0.0,
    "special_handling": 0.0,
}


def merge_config(config: dict | None, base: dict | None = None) -> dict:
    """Validate ``config`` and lay it over ``base`` (itself over the defaults)."""
    merged = {**DEFAULT_COST_CONFIG, **(base or {})}
    if config is not None and not isinstance(config, dict):
        raise InvalidRequest({"cost_config": ["cost_config must be an object"]})
    for key, value in (config or {}).items():
        if key not in DEFAULT_COST_CONFIG:
            raise InvalidRequest({"cost_config": [f"Unknown cost setting '{key}'"]})
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int | float) or value < 0:
            raise InvalidRequest({"cost_config": [f"Cost setting '{key}' must be a non-negative number"]})
        merged[key] = float(value)
    return merged


def estimate_costs(assignments_data: list[dict], config: dict | None = None) -> dict:
    """Cost breakdown for a list of ``{"quantity": ..., "rate_per_1000": ...}`` dicts."""
    settings = merge_config(config)

    items_cost = sum(
        a["quantity"] * a["rate_per_1000"] / 1000 for a in assignments_data if a.get("rate_per_1000") is not None
    )
    shipping_and_handling = settings["shipping_cost"] + settings["handling_cost"]
    taxes = items_cost * settings["tax_rate"]
    additional_fees = settings["insurance"] + settings["expedited_shipping"] + settings["special_handling"]
    total = items_cost + shipping_and_handling + taxes + additional_fees

    return {
        "items_cost": round(items_cost, 2),
        "shipping_and_handling": round(shipping_and_handling, 2),
        "taxes": round(taxes, 2),
        "additional_fees": round(additional_fees, 2),
        "total": round(total, 2),
    }
