"""HTTP API for assembling and editing subtitle cues (FastAPI)."""
