"""Application layer: FastAPI boundary wiring."""
