"""
Gunicorn Configuration for the Marketplace Integration Gateway
Uvicorn workers serving api_server:app
"""
import os

# Server socket
bind = f"0.0.0.0:{os.getenv('PORT', '5000')}"
backlog = 2048

# Worker processes
workers = int(os.getenv("WEB_CONCURRENCY", "4"))
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000
max_requests = 10000
max_requests_jitter = 1000
# Above the provider timeout so a slow upstream surfaces as UpstreamError, not a killed worker
timeout = 60
keepalive = 30

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

proc_name = "integration_gateway"

daemon = False
pidfile = None
umask = 0
user = None
group = None
tmp_upload_dir = None

preload_app = False


def on_starting(server):
    """Called just before the master process is initialized."""
    print("🚀 Gunicorn master process starting...")


def when_ready(server):
    """Called just after the server is started."""
    print(f"✅ Gunicorn ready with {workers} uvicorn workers on {bind}")


def worker_exit(server, worker):
    """Called just after a worker has been exited."""
    print(f"🔄 Worker {worker.pid} exited")
