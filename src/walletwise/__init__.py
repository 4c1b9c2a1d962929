"""walletwise: wallets, category budgets and spending reports."""

__version__ = "0.1.0"


# cli.main is imported on demand so ``import walletwise`` stays free of click
def __getattr__(name):
    if name == "main":
        from walletwise.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
