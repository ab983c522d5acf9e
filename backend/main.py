"""Entry point for running the FastAPI application."""

import os

import uvicorn
from dotenv import load_dotenv

load_dotenv()

if __name__ == "__main__":
    # PORT=7860 python main.py overrides the default
    port = int(os.getenv("PORT", "8000"))

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=port,
        reload=os.getenv("RELOAD", "true").lower() not in {"0", "false", "no"},
    )
