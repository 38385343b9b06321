"""Gunicorn configuration file.

Run with:
    gunicorn -c gunicorn.conf.py 'classroom.flask_app:create_app()'

Each worker builds its own app, so each worker holds its own identity
provider token cache.
"""
import os
from pathlib import Path

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:5000")
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
threads = int(os.environ.get("GUNICORN_THREADS", "4"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()

SECRETS_DIR = Path("/run/secrets")

# Secret file name -> environment variable fallback
REQUIRED_SECRETS = {
    "identity_client_secret": "IDENTITY_CLIENT_SECRET",
}
OPTIONAL_SECRETS = {
    "audit_log_signing_key": "AUDIT_LOG_SIGNING_KEY",
}


def _secret_available(secret_name: str, env_var: str) -> bool:
    secret_file = SECRETS_DIR / secret_name
    if secret_file.is_file() and secret_file.read_text().strip():
        return True
    return bool(os.environ.get(env_var))


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    Reports missing secrets before the first request reaches the worker.
    Settings are loaded (and fail hard in production) when the app is built.
    """
    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"

    for secret_name, env_var in REQUIRED_SECRETS.items():
        if _secret_available(secret_name, env_var):
            continue
        if demo_mode:
            worker.log.info(f"{env_var} not provided; demo default will be used")
        else:
            worker.log.error(f"{env_var} missing from {SECRETS_DIR} and environment")

    for secret_name, env_var in OPTIONAL_SECRETS.items():
        if not _secret_available(secret_name, env_var):
            worker.log.warning(f"{env_var} not provided; audit events will be unsigned")
