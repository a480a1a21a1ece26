"""
India Arrest Map Backend — FastAPI
Modular entry point. All logic is split across:
  config.py, regions.py, validation.py, aggregation.py, colors.py, ranking.py,
  dashboard.py, arrests.py, media.py, store.py, auth.py, geo.py, routes.py
"""

import logging

logging.basicConfig(level=logging.INFO)

# Import the FastAPI app from routes (this also builds the store/identity clients)
from routes import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
