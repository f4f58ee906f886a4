#!/usr/bin/env python3
"""
Development startup script.

Starts the ProcureFlow API server in development mode.
"""

import os
import sys
import shutil
import subprocess
from pathlib import Path

# Project root
PROJECT_ROOT = Path(__file__).parent.parent


def check_dependencies():
    """Check if required dependencies are installed."""
    try:
        import fastapi
        import uvicorn
        import httpx
        import openai
        import multipart
        print("✓ All core dependencies installed")
        return True
    except ImportError as e:
        print(f"✗ Missing dependency: {e.name}")
        print("\nRun: pip install -e .")
        return False


def check_env():
    """Check if .env file exists."""
    env_file = PROJECT_ROOT / "config" / ".env"
    env_example = PROJECT_ROOT / "config" / ".env.example"

    if env_file.exists():
        print("✓ Configuration file found")
        return True
    elif env_example.exists():
        print("! Configuration file not found, copying from example...")
        shutil.copy(env_example, env_file)
        print("✓ Created config/.env from example")
        print("  Please set OPENAI_API_KEY in config/.env")
        return True
    else:
        print("✗ No configuration file found")
        return False


def check_api_key():
    """Warn when the assistant cannot run."""
    sys.path.insert(0, str(PROJECT_ROOT))
    from procureflow.core.config import get_settings

    if get_settings().llm_configured:
        print("✓ OpenAI API key configured")
    else:
        print("! OPENAI_API_KEY not set - /api/chat and /api/transcribe will answer 500")


def start_server(port: int):
    """Start the API server with auto-reload."""
    print(f"\n🛒 Starting ProcureFlow on http://localhost:{port} ...")
    print(f"📍 API docs: http://localhost:{port}/docs")
    print("\nPress Ctrl+C to stop")
    print("=" * 60)

    process = subprocess.Popen(
        [
            sys.executable, "-m", "uvicorn",
            "procureflow.main:app",
            "--reload",
            "--host", "0.0.0.0",
            "--port", str(port),
        ],
        cwd=PROJECT_ROOT,
        env={**os.environ, "PYTHONPATH": str(PROJECT_ROOT)},
    )
    try:
        process.wait()
    except KeyboardInterrupt:
        print("\n\nShutting down...")
        process.terminate()
        process.wait()
        print("Server stopped.")


def main():
    print("=" * 60)
    print("ProcureFlow - Development Server")
    print("=" * 60)

    # Pre-flight checks
    print("\nRunning pre-flight checks...")

    if not check_dependencies():
        sys.exit(1)

    if not check_env():
        sys.exit(1)

    check_api_key()

    print("\n✓ All checks passed!")

    start_server(int(os.getenv("PORT", "4000")))


if __name__ == "__main__":
    main()
