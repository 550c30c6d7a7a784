"""
Django settings for promptshelf project.

Everything deploy-specific comes from the environment; the defaults are for
local development only.
"""
import logging
import os
from pathlib import Path

import firebase_admin
from django.core.exceptions import ImproperlyConfigured
from firebase_admin import credentials

logger = logging.getLogger(__name__)

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-local-development-key')

DEBUG = os.environ.get('DJANGO_DEBUG', 'False').lower() in ('1', 'true', 'yes')

ALLOWED_HOSTS = [host for host in os.environ.get('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',') if host]


# Application definition

INSTALLED_APPS = [
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'core',
    'prompts',
    'blog',
    'custom_admin',
    'accounts',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'promptshelf.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'promptshelf.wsgi.application'


# Django's own tables (auth users, sessions) live in sqlite; catalog data is in Firestore
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# Firebase

FIREBASE_CREDENTIALS = os.environ.get('FIREBASE_CREDENTIALS', '')
FIREBASE_PROJECT_ID = os.environ.get('FIREBASE_PROJECT_ID', '')

if not firebase_admin._apps:
    options = {'projectId': FIREBASE_PROJECT_ID} if FIREBASE_PROJECT_ID else None
    if FIREBASE_CREDENTIALS and os.path.exists(FIREBASE_CREDENTIALS):
        firebase_admin.initialize_app(credentials.Certificate(FIREBASE_CREDENTIALS), options)
    elif FIREBASE_PROJECT_ID:
        # Application default credentials (Cloud Run, emulator)
        firebase_admin.initialize_app(options=options)
    else:
        logger.warning("Firebase is not configured; document store calls will fail with StoreUnavailable")


# Catalog

# Upper bound on documents read by one in-memory filter/paginate pass
CATALOG_MAX_SCAN = int(os.environ.get('CATALOG_MAX_SCAN', '5000'))

# 'all': category counters track every prompt/post.
# 'visible': only approved prompts and published posts.
CATEGORY_COUNT_POLICY = os.environ.get('CATEGORY_COUNT_POLICY', 'all')
if CATEGORY_COUNT_POLICY not in ('all', 'visible'):
    raise ImproperlyConfigured(f"CATEGORY_COUNT_POLICY must be 'all' or 'visible', not {CATEGORY_COUNT_POLICY!r}")

PROMPTS_PAGE_SIZE = int(os.environ.get('PROMPTS_PAGE_SIZE', '12'))


LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'core': {
            'handlers': ['console'],
            'level': os.environ.get('CATALOG_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
        'prompts': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
        'blog': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
        'custom_admin': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
        'accounts': {'handlers': ['console'], 'level': 'INFO', 'propagate': False},
    },
}
