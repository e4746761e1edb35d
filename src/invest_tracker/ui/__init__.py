"""UI package for Invest Tracker: rentability window and price dialog."""

__all__ = ["RentabilityWindow"]


def __getattr__(name: str):
    """Lazy-load RentabilityWindow so ui.utils can be used without a display."""
    if name == "RentabilityWindow":
        from invest_tracker.ui.rentability_window import RentabilityWindow
        return RentabilityWindow
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
