"""HTTP API for the content registry."""
