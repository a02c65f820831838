"""Database query functions. Each takes an AsyncConnection as first argument."""
