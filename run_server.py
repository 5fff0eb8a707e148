#!/usr/bin/env python
"""
Server Entry Point

Usage:
    Development:  python run_server.py --dev
    Production:   python run_server.py
    Gunicorn:     python run_server.py --gunicorn

Host, port and worker count come from API_HOST, API_PORT and API_WORKERS.
X-Forwarded-For is never trusted by the server itself; see
VIEWS_TRUST_FORWARDED_FOR and VIEWS_TRUSTED_PROXIES.
"""

import argparse
import subprocess

import uvicorn

from realty_api.config import get_settings


def run_dev_server(port: int):
    """Run development server with auto-reload."""
    settings = get_settings()
    uvicorn.run(
        "realty_api.main:app",
        host=settings.api_host,
        port=port,
        reload=True,
        reload_dirs=["realty_api"],
        log_level="debug",
        proxy_headers=False,
    )


def run_prod_server(port: int):
    """Run Uvicorn with API_WORKERS worker processes."""
    settings = get_settings()
    uvicorn.run(
        "realty_api.main:app",
        host=settings.api_host,
        port=port,
        workers=settings.api_workers,
        log_level=settings.monitoring.log_level.lower(),
        proxy_headers=False,
        server_header=False,
    )


def run_gunicorn():
    subprocess.run(["gunicorn", "realty_api.main:app", "-c", "gunicorn.conf.py"], check=True)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Realty Admin API Server")
    parser.add_argument("--dev", action="store_true", help="Run in development mode with auto-reload")
    parser.add_argument("--gunicorn", action="store_true", help="Run under Gunicorn (reads gunicorn.conf.py)")
    parser.add_argument("--port", type=int, help="Override API_PORT")
    args = parser.parse_args()

    port = args.port or get_settings().api_port
    if args.gunicorn:
        run_gunicorn()
    elif args.dev:
        run_dev_server(port)
    else:
        run_prod_server(port)
