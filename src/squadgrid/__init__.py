"""SquadGrid: ledger store and analytics for a mocked stablecoin payment dashboard."""

__version__ = "0.1.0"
