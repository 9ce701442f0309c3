"""trustledger - IOLTA trust account ledger."""

__version__ = "0.1.0"


def __getattr__(name):
    # The CLI entry point is loaded on first access
    if name == "main":
        from trustledger.cli.main import main

        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
