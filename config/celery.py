"""
Celery application for the dealership financing engine.

Reads CELERY_* settings from Django and discovers tasks.py in every
installed app.
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('dealership')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
