"""
Run the workspace assistant web server (REST + WebSocket).

Usage:
    python run_api.py

Environment variables (all optional unless noted):
    LLM_PROVIDER        "google", "openai", "groq", or "ollama" (default: google)
    LLM_MODEL           Model name for the selected provider
    GOOGLE_API_KEY      Required when LLM_PROVIDER=google (GEMINI_API_KEY also accepted)
    OPENAI_API_KEY      Required when LLM_PROVIDER=openai
    GROQ_API_KEY        Required when LLM_PROVIDER=groq
    OLLAMA_BASE_URL     Ollama server URL (default: http://localhost:11434/)
    WORKSPACE_ROOT      Directory the agents work in (default: current directory)
    PORT                Listening port (default: 3000)
"""

import os
import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "adapters.rest.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "3000")),
        reload=True,
    )
