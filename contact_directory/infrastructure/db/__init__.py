"""PostgreSQL connection pool."""
