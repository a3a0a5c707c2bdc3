"""Use cases returning typed Result objects."""
