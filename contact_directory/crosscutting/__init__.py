"""Cross-cutting concerns: configuration, logging, errors, metrics, middleware."""
