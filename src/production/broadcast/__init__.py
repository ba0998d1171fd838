"""Broadcast adapter abstraction — pushes fulfillment changes to live viewers."""

import os

_hub_instance = None


def get_hub():
    """Return the configured broadcast hub (singleton).

    Uses InMemoryHub by default. Select another adapter with the
    BROADCAST_ADAPTER environment variable.
    """
    global _hub_instance
    if _hub_instance is None:
        adapter = os.environ.get("BROADCAST_ADAPTER", "memory")
        if adapter == "memory":
            from production.broadcast.memory_hub import InMemoryHub

            _hub_instance = InMemoryHub()
        else:
            raise ValueError(f"Unknown broadcast adapter: {adapter}")
    return _hub_instance


def reset_hub():
    """Drop the hub and every subscription it holds (shutdown and tests)."""
    global _hub_instance
    if _hub_instance is not None:
        _hub_instance.close()
    _hub_instance = None
