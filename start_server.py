#!/usr/bin/env python3
"""
AI Router FastAPI Server Startup Script

This script starts the FastAPI server with proper configuration
and provides helpful startup information.
"""

import importlib.util
import os
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from llm_providers.factory import ProviderFactory


def check_dependencies() -> bool:
    """Check if required dependencies are installed"""
    required_packages = ['fastapi', 'uvicorn', 'pydantic', 'httpx', 'numpy']
    missing_packages = [p for p in required_packages if importlib.util.find_spec(p) is None]

    if missing_packages:
        print(f"Error: Missing required packages: {', '.join(missing_packages)}")
        print(f"Install them with: pip install {' '.join(missing_packages)}")
        return False

    return True


def check_config_file(config_file: str = "config.ini") -> bool:
    """Report whether a configuration file is present (optional)"""
    config_path = Path(config_file)
    if not config_path.exists():
        print(f"No configuration file at {config_path}; using environment variables only")
        print("See config.sample.ini for the available settings")
        return False

    print(f"Configuration file found: {config_path}")
    return True


def check_api_keys(environ: Optional[Mapping[str, str]] = None) -> List[str]:
    """List providers whose API key environment variable is set"""
    environ = os.environ if environ is None else environ
    found = []
    for provider_type, provider_info in ProviderFactory.PROVIDERS.items():
        if environ.get(provider_info["api_key_env"]):
            found.append(provider_type.value)
    return found


def server_settings(environ: Optional[Mapping[str, str]] = None) -> Dict[str, object]:
    environ = os.environ if environ is None else environ
    return {
        "host": environ.get("HOST", "0.0.0.0"),
        "port": int(environ.get("PORT", "8000")),
        "reload": environ.get("RELOAD", "true").lower() == "true",
        "log_level": environ.get("LOG_LEVEL", "info"),
    }


def main():
    """Main startup routine"""
    print("Starting AI Router FastAPI Server")
    print("=" * 40)

    print(f"Working directory: {Path.cwd()}")

    print("\n📦 Checking Dependencies...")
    if not check_dependencies():
        sys.exit(1)
    print("All dependencies are available")

    print("\n⚙️  Checking Configuration...")
    check_config_file()  # Optional
    providers = check_api_keys()
    if providers:
        print(f"API keys found in environment for: {', '.join(providers)}")
    else:
        print("Warning: no API keys found in environment; routing fails until one is configured")

    settings = server_settings()
    host, port = settings["host"], settings["port"]

    print(f"\n🌐 Server Configuration:")
    for key, value in settings.items():
        print(f"  • {key}: {value}")

    print(f"\n📡 API Endpoints will be available at:")
    print(f"  • Health:     http://{host}:{port}/health")
    print(f"  • Generate:   http://{host}:{port}/api/generate/code")
    print(f"  • Projects:   http://{host}:{port}/api/projects")
    print(f"  • Usage:      http://{host}:{port}/api/usage")
    print(f"  • Providers:  http://{host}:{port}/api/providers")
    print(f"  • Docs:       http://{host}:{port}/docs")

    print(f"\nStarting server...")
    print("=" * 40)

    try:
        import uvicorn
        uvicorn.run(
            "fastapi_app:app",
            host=host,
            port=port,
            reload=settings["reload"],
            log_level=settings["log_level"]
        )
    except KeyboardInterrupt:
        print("\n\n🛑 Server stopped by user")


if __name__ == "__main__":
    main()
