from datetime import datetime
import pytz


def get_utc_time_naive():
    """Get current UTC time as naive datetime for database storage"""
    return datetime.now(pytz.utc).replace(tzinfo=None)


def to_utc_naive(dt):
    """Normalise an aware datetime to naive UTC; naive values are assumed UTC"""
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(pytz.utc).replace(tzinfo=None)
