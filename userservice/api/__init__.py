"""HTTP API for the user resource."""
