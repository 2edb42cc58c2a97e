"""Blueprint-driven code generation with journaled, reversible runs."""

__version__ = "0.1.0"
