#!/usr/bin/env python3
"""
Run the Research Swarm API server.

Usage:
    python -m research_swarm.run                    # Run on default port 8000
    python -m research_swarm.run --port 8080        # Run on custom port
    python -m research_swarm.run --reload           # Run with hot reload (dev mode)

Environment Variables (set in .env file or export):
    ANTHROPIC_API_KEY=sk-ant-...    # Primary: Your Anthropic/Claude API key
    OPENAI_API_KEY=sk-...           # Fallback: OpenAI API key (if no Anthropic)
    LLM_MODEL=claude-sonnet-4-20250514         # Optional: Model for the heavier personas
    ENABLE_HUMAN_CHECKPOINTS=false  # Optional: Never pause for the requester
    RUNS_FILE=runs.json             # Optional: Keep saved runs across restarts

Quick Start:
    1. Create a .env file with your API keys
    2. Install the package: pip install -e .
    3. Run the server: python -m research_swarm.run
    4. Open http://localhost:8000/docs in your browser
"""

import argparse

from .config import config


def main():
    parser = argparse.ArgumentParser(description="Run the Research Swarm API")
    parser.add_argument("--host", default=config.api_host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=config.api_port, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    args = parser.parse_args()

    # Check for required API keys
    if not config.validate():
        print("⚠️  Warning: No LLM API key found. The API will not function properly.")
        print("   Set ANTHROPIC_API_KEY (recommended) or OPENAI_API_KEY in your environment.")
    elif config.llm_provider == "anthropic":
        print("✅ Using Claude (Anthropic) as LLM provider")
    else:
        print("✅ Using OpenAI as LLM provider")

    if not config.enable_human_checkpoints:
        print("ℹ️  Note: Human checkpoints disabled. The Project Manager will never pause for input.")

    print(f"""
╔══════════════════════════════════════════════════════════════╗
║                      Research Swarm                           ║
╠══════════════════════════════════════════════════════════════╣
║  🔍 Individual research  - 11 personas, with delegation       ║
║  📋 Project Manager      - Chooses how the team collaborates  ║
║  🗣️  Collaboration        - Meetings, debates, discussions     ║
║  📝 Synthesizer          - Compiles the final report          ║
╚══════════════════════════════════════════════════════════════╝

🚀 Starting server at http://{args.host}:{args.port}
📖 API docs at http://localhost:{args.port}/docs
""")

    import uvicorn
    uvicorn.run(
        "research_swarm.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload
    )


if __name__ == "__main__":
    main()
