"""HTTP transport layer (FastAPI)."""
