"""Application services and use cases."""
