"""Route builders for the FastAPI app."""
