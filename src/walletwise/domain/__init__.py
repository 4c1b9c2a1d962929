"""Domain layer for walletwise application."""

# Services are resolved lazily: the database layer imports
# walletwise.domain.entities, and eager imports here would be circular.
_SERVICES = {
    "BalanceReconciler": "walletwise.domain.reconciler",
    "CategoryService": "walletwise.domain.category",
    "EntityStore": "walletwise.domain.store",
    "ProfileService": "walletwise.domain.profile",
    "ReportService": "walletwise.domain.report",
    "WalletService": "walletwise.domain.wallet",
}

__all__ = sorted(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
