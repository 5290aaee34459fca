# File: civic_issues/core/clock.py
from datetime import datetime

def local_now() -> datetime:
    """Aware timestamp in the server's local zone; day windows are local."""
    return datetime.now().astimezone()
