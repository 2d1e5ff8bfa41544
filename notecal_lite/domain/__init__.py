"""Domain logic for notecal_lite: upcoming window, persistence, status."""
