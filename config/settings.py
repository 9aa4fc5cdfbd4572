"""Django settings for the pip-alert incident pipeline.

Every value can be overridden through environment variables (optionally loaded
from .env files, see config/env.py).
"""

import os
from pathlib import Path

from config.env import env_bool, env_list, load_env

BASE_DIR = Path(__file__).resolve().parent.parent

load_env(BASE_DIR)

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-dev-key-change-me")
DEBUG = env_bool("DJANGO_DEBUG", False)
ALLOWED_HOSTS = env_list("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")

INSTALLED_APPS = [
    "config.apps.OnCallAdminConfig",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django_object_actions",
    "django_json_widget",
    "apps.teams",
    "apps.incidents",
    "apps.devices",
    "apps.notify",
    "apps.demo",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": os.environ.get("DB_ENGINE", "django.db.backends.sqlite3"),
        "NAME": os.environ.get("DB_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": os.environ.get("DB_USER", ""),
        "PASSWORD": os.environ.get("DB_PASSWORD", ""),
        "HOST": os.environ.get("DB_HOST", ""),
        "PORT": os.environ.get("DB_PORT", ""),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# --- Celery -----------------------------------------------------------------

CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")
CELERY_TASK_ALWAYS_EAGER = env_bool("CELERY_TASK_ALWAYS_EAGER", False)
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    "reclaim-expired-incidents": {
        "task": "apps.incidents.tasks.reclaim_expired_incidents",
        "schedule": float(os.environ.get("INCIDENT_RECLAIM_INTERVAL_SECONDS", "900")),
    },
}

# --- Incidents --------------------------------------------------------------

# Retention window for incidents; expired rows are deleted by the reclaim task.
INCIDENT_TTL_HOURS = int(os.environ.get("INCIDENT_TTL_HOURS", "24"))
# Actor recorded on the initial "triggered" timeline entry.
INCIDENT_ALARM_SOURCE = os.environ.get("INCIDENT_ALARM_SOURCE", "CloudWatch")
# When enabled, the alarm webhook enqueues ingestion instead of running inline.
ENABLE_CELERY_INGESTION = env_bool("ENABLE_CELERY_INGESTION", True)
# When enabled, incident creation enqueues push delivery via the change feed.
NOTIFY_ON_INCIDENT_CREATED = env_bool("NOTIFY_ON_INCIDENT_CREATED", True)

# --- Push delivery (APNs) ---------------------------------------------------

# JSON document {"key": ..., "keyId": ..., "teamId": ..., "bundleId": ...}
APNS_SECRET = os.environ.get("APNS_SECRET", "")
# Alternative: path to a file holding the same JSON document.
APNS_SECRET_FILE = os.environ.get("APNS_SECRET_FILE", "")
APNS_TIMEOUT = float(os.environ.get("APNS_TIMEOUT", "10"))
APNS_MAX_WORKERS = int(os.environ.get("APNS_MAX_WORKERS", "4"))
NOTIFY_MAX_RETRIES = int(os.environ.get("NOTIFY_MAX_RETRIES", "3"))

# --- Logging ----------------------------------------------------------------

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": os.environ.get("DJANGO_LOG_LEVEL", "WARNING").upper(),
            "propagate": False,
        },
        "apps": {
            "handlers": ["console"],
            "level": LOG_LEVEL,
            "propagate": False,
        },
    },
}
