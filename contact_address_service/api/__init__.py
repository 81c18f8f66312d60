"""HTTP layer: FastAPI application, dependencies and middleware."""
