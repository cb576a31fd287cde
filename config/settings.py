"""Facturo settings.

Standard Django project settings. Values that differ between machines are read
from the environment (optionally through a `.env` file next to manage.py).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


# NOTE: for development only. Set FACTURO_SECRET_KEY in production.
SECRET_KEY = os.environ.get("FACTURO_SECRET_KEY", "dev-only-secret-key-change-me")

DEBUG = env_bool("FACTURO_DEBUG", True)

ALLOWED_HOSTS = [h.strip() for h in os.environ.get("FACTURO_ALLOWED_HOSTS", "*").split(",") if h.strip()]

INSTALLED_APPS = [
    # unfold must come before django.contrib.admin
    "unfold",
    "unfold.contrib.filters",

    "django_object_actions",
    "taggit",

    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django.contrib.humanize",

    "guardian",
    "django_filters",
    "simple_history",
    "django_fsm",
    "django_fsm_log",

    # Local apps
    "core",
    "contacts",
    "documents",
    "bankrec",
    "crm",
    "reminders",
    "commissions",
    "dashboard",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.locale.LocaleMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",

    # Records request.user on history rows
    "simple_history.middleware.HistoryRequestMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
                "core.context_processors.base_context",
            ],
        },
    }
]

WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("FACTURO_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

LOGIN_URL = "admin:login"
LOGIN_REDIRECT_URL = "dashboard:home"

LANGUAGE_CODE = "fr-fr"
TIME_ZONE = "Europe/Paris"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATICFILES_DIRS = [BASE_DIR / "static"]

MEDIA_URL = "/media/"
MEDIA_ROOT = BASE_DIR / "media"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# django-guardian
AUTHENTICATION_BACKENDS = (
    "django.contrib.auth.backends.ModelBackend",
    "guardian.backends.ObjectPermissionBackend",
)

ANONYMOUS_USER_NAME = None

# django-taggit
TAGGIT_CASE_INSENSITIVE = True

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
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
        "level": "WARNING",
    },
    "loggers": {
        app: {
            "handlers": ["console"],
            "level": os.environ.get("FACTURO_LOG_LEVEL", "INFO"),
            "propagate": False,
        }
        for app in ("core", "contacts", "documents", "bankrec", "crm", "reminders", "commissions", "dashboard")
    },
}

# Business defaults
FACTURO_DEFAULT_CURRENCY = "EUR"
FACTURO_DEFAULT_PAYMENT_TERMS = 30
FACTURO_MAP_CENTER = (46.603354, 1.888334)
FACTURO_MAP_ZOOM = 6
FACTURO_REMINDER_DUE_WINDOW_MINUTES = 60

# Base Adresse Nationale (api-adresse.data.gouv.fr)
FACTURO_GEOCODING_URL = os.environ.get("FACTURO_GEOCODING_URL", "https://api-adresse.data.gouv.fr")
FACTURO_GEOCODING_TIMEOUT = float(os.environ.get("FACTURO_GEOCODING_TIMEOUT", "10"))

from config.menu import UNFOLD  # noqa: E402,F401
