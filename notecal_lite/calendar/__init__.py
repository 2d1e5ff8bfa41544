"""ICS feed ingestion and recurrence expansion for notecal_lite."""
