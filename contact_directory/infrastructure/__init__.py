"""Infrastructure adapters (persistence, identity, network)."""
