"""
Run the workspace assistant CLI.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Commands:
    chat       Interactive session (exit / status / memory, anything else is a task)
    run        Run one task and exit
    tree       Print the workspace file tree

Examples:
    python run_cli.py chat
    python run_cli.py run "create a file named notes.txt with content 'hello'"
    CLI_PROMPT="list the python files" python run_cli.py

Environment variables (all optional unless noted):
    LLM_PROVIDER        "google", "openai", "groq", or "ollama" (default: google)
    LLM_MODEL           Model name for the selected provider
    GOOGLE_API_KEY      Required when LLM_PROVIDER=google (GEMINI_API_KEY also accepted)
    OPENAI_API_KEY      Required when LLM_PROVIDER=openai
    GROQ_API_KEY        Required when LLM_PROVIDER=groq
    WORKSPACE_ROOT      Directory the agents work in (default: current directory)
    MAX_ITERATIONS      Analyst/executor pairs per task (default: 6)
    STOP_BIAS           "stop" or "continue" (default: stop)
"""

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

from adapters.cli.main import app

if __name__ == "__main__":
    app()
