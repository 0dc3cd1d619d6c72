#!/usr/bin/env python3
"""
PR Inline Reviewer Server

Runs the Flask server for the PR Inline Reviewer.

Usage:
    python run_server.py [config.yaml]
"""

import sys
from pathlib import Path

# Add src directory to Python path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))

from pr_inline_reviewer.config import ConfigManager, load_config
from pr_inline_reviewer.server import create_app


def main() -> None:
    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    manager = ConfigManager(load_config(config_path))
    config = manager.config

    app = create_app(config)

    print("🚀 Starting PR Inline Reviewer Server...")
    print(f"📍 Server will be available at: http://{config.server.host}:{config.server.port}")
    print("📋 Endpoints:")
    print("   - Health Check: GET /health")
    print("   - Review: POST /review")
    print("   - GitHub Webhook: POST /webhook/github")
    print("   - GitLab Webhook: POST /webhook/gitlab")

    app.run(
        host=config.server.host,
        port=config.server.port,
        debug=config.debug
    )


if __name__ == '__main__':
    main()
