import multiprocessing
import os

wsgi_app = "app.main:app"
proc_name = "group-predictions-api"
bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"
# Each worker holds its own ranking cache; invalidation only reaches the worker that took the write,
# so other workers can serve a snapshot up to RANKING_CACHE_TTL_SECONDS old.
workers = int(os.getenv("WEB_CONCURRENCY", min(multiprocessing.cpu_count() * 2 + 1, 4)))
worker_class = "uvicorn.workers.UvicornWorker"
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
timeout = int(os.getenv("GUNICORN_TIMEOUT", "30"))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", "20"))
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", "5"))
