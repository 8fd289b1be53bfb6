"""certledger: block-height-versioned queries over a ledger projection."""

__version__ = "0.1.0"
