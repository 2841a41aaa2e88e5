"""HTTP routes for the enrollment service."""
