"""Admin actors and login."""
