"""Service adapters: identity provider, privileged functions, origin providers."""
