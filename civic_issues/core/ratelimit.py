# File: civic_issues/core/ratelimit.py
# Project: civic-issues-backend

from slowapi import Limiter
from slowapi.util import get_remote_address

AUTH_LIMIT = "10/15 minutes"
LIST_LIMIT = "100/15 minutes"
REPORT_CREATE_LIMIT = "20/hour"
EMERGENCY_CREATE_LIMIT = "10/hour"

# Decorators bind at import time; create_app toggles `enabled` from settings.
limiter = Limiter(key_func=get_remote_address)
