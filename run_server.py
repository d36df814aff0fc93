#!/usr/bin/env python3
"""
Development server launcher for the Plant & Fungus Classifier API.

For production, run the app under a proper ASGI server deployment.
"""

import os
import uvicorn
from pathlib import Path

project_root = Path(__file__).parent
src_path = project_root / "src"

if __name__ == "__main__":
    print("Starting Plant & Fungus Classifier API Development Server")
    print("Server will be available at: http://localhost:8000")
    print("API documentation at: http://localhost:8000/docs")
    print("\n" + "="*50 + "\n")

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",  # Accept connections from any IP
        port=int(os.getenv("PORT", "8000")),
        reload=True,     # Auto-reload on code changes (development only)
        reload_dirs=[str(src_path), str(project_root / "prompts")],
        log_level=os.getenv("LOG_LEVEL", "info").lower()
    )
