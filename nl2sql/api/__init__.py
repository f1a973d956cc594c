"""HTTP API for nl2sql."""
