"""Core infrastructure for notecal_lite: time provider and ICS sources."""
