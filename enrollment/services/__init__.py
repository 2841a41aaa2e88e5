"""Service modules for persistence, credentials, and sessions."""
