"""HTTP layer (FastAPI routers, dependencies, exception handlers)."""
