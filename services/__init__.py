"""Account lifecycle, authentication and notification services."""
