"""
Production Server Configuration

Run FastAPI with Uvicorn workers under Gunicorn for production deployment.
Each worker holds its own dashboard stats cache unless
DASHBOARD_STATS_CACHE_BACKEND=redis.
"""

import multiprocessing
import os

# Server socket
bind = f"{os.getenv('API_HOST', '0.0.0.0')}:{os.getenv('API_PORT', '8000')}"
backlog = 2048

# Worker processes
workers = int(os.getenv("API_WORKERS", min(multiprocessing.cpu_count() * 2 + 1, 8)))
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
max_requests = 10000
max_requests_jitter = 1000
# Well above DASHBOARD_QUERY_TIMEOUT_SECONDS
timeout = 30
keepalive = 5
graceful_timeout = 30

# Process naming
proc_name = "realty-api"

# Server mechanics
daemon = False
pidfile = "/tmp/realty-api.pid"

# Logging
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info")
accesslog = "-"
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# X-Forwarded-For is handled by the app against VIEWS_TRUSTED_PROXIES
forwarded_allow_ips = ""
