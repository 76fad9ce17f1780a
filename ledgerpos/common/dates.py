"""
Rangos de fechas en hora local del servidor
"""
from datetime import date, datetime, time, timedelta


def day_range(day: date):
    """[00:00 del día, 00:00 del día siguiente)"""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def month_range(day: date):
    """[primer día del mes, primer día del mes siguiente)"""
    start = datetime.combine(day.replace(day=1), time.min)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end
