"""HTTP API for document builder sessions."""
