#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Serves the classbook API with autoreload against the database configured in
``DATABASE_URL`` (a local SQLite file by default).
"""
import os
from pathlib import Path

import uvicorn

from classbook.core.config import settings

if __name__ == "__main__":
    os.chdir(Path(__file__).parent)
    print(f"Starting {settings.app_name} development server")
    print(f"Database: {settings.database_url}")
    print("API docs: http://localhost:8000/docs")

    uvicorn.run(
        "classbook.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        log_level=settings.log_level.lower(),
    )
