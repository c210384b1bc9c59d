"""hivemoji: custom emoji registries rebuilt from ledger operation logs."""

__version__ = "0.3.0"
