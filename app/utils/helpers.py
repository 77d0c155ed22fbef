import math
from datetime import datetime, timedelta

import pytz


def utcnow():
    """Instante actual en UTC, sin tzinfo (así se guarda en la BD)."""
    return datetime.now(pytz.UTC).replace(tzinfo=None)


def format_timestamp(timestamp):
    return timestamp.isoformat() if timestamp else None


def to_local(timestamp, tz_name):
    if timestamp is None:
        return None
    if timestamp.tzinfo is None:
        timestamp = pytz.UTC.localize(timestamp)
    return timestamp.astimezone(pytz.timezone(tz_name))


def format_local(timestamp, tz_name):
    local = to_local(timestamp, tz_name)
    return local.strftime('%Y-%m-%d %H:%M:%S') if local else None


def local_date_bounds(day, tz_name):
    """Inicio y fin (UTC naive) de la fecha local ``day``."""
    tz = pytz.timezone(tz_name)
    start = tz.localize(datetime.combine(day, datetime.min.time()))
    end = tz.localize(datetime.combine(day + timedelta(days=1), datetime.min.time()))
    return (start.astimezone(pytz.UTC).replace(tzinfo=None),
            end.astimezone(pytz.UTC).replace(tzinfo=None))


def local_day_bounds(now, tz_name):
    return local_date_bounds(to_local(now, tz_name).date(), tz_name)


def parse_date(date_str):
    if not date_str:
        return None
    return datetime.strptime(date_str, "%Y-%m-%d").date()


def coerce_non_negative_int(value):
    # "abc", None y negativos valen 0; "2.7" vale 2
    if isinstance(value, bool):
        return 0
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    return number if number > 0 else 0


def round_half_up(value):
    return int(math.floor(value + 0.5))


def _plural(amount, singular, plural):
    return f"{amount} {singular if amount == 1 else plural}"


def validity_text(hours, minutes):
    if hours > 0 and minutes > 0:
        return f"{_plural(hours, 'hora', 'horas')} y {_plural(minutes, 'minuto', 'minutos')}"
    if hours > 0:
        return _plural(hours, 'hora', 'horas')
    return _plural(minutes, 'minuto', 'minutos')
