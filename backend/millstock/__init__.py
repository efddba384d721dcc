"""MillStock - purchase, production, stock and ledger core for a weight-based trading ERP."""

__version__ = "1.0.0"
