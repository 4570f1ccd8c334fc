"""Core domain logic free of I/O."""
