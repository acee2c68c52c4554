"""HTTP surface: FastAPI app, middleware and the FilterGate."""
