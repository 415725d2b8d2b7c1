"""
FastAPI Development Server

Run the roofing site builder API in development mode.

Usage:
    python scripts/run-dev.py
    # OR (after activating venv)
    source .venv/bin/activate
    python scripts/run-dev.py
"""

import os
from pathlib import Path

import uvicorn
from loguru import logger

project_root = Path(__file__).parent.parent
os.chdir(project_root)


def main():
    """Start the FastAPI development server"""
    logger.info("="*80)
    logger.info("Roofing Site Builder - API Server")
    logger.info("="*80)
    logger.info("Server will be available at: http://localhost:8000")
    logger.info("API Documentation: http://localhost:8000/docs")
    logger.info("Chat Streaming: POST http://localhost:8000/functions/v1/chat")
    logger.info("Blog Generation: POST http://localhost:8000/functions/v1/generate-blog")
    logger.info("Press CTRL+C to stop the server")
    logger.info("="*80)

    uvicorn.run(
        "roofsite.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
        access_log=True,
        reload_dirs=[str(project_root / "roofsite")],
    )


if __name__ == "__main__":
    main()
