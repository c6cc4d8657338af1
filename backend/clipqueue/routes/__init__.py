"""HTTP routes for the clipqueue service."""
