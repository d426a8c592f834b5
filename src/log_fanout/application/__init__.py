"""Application layer orchestrating the relay's use cases."""
