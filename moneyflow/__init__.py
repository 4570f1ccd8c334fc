"""Money Flow notification delivery service."""
