"""Contact Directory: role-gated contact directory with IP-range admission control."""

__version__ = "0.1.0"
