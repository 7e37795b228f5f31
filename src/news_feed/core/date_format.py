from datetime import date, datetime


def format_relative_date(published_at: datetime, today: date | None = None) -> str:
    """Render a publish time as "Today", "Yesterday" or "N days ago".

    The comparison is by calendar day in the local timezone.
    """

    if today is None:
        today = date.today()
    published_day = published_at.astimezone().date()
    days = (today - published_day).days

    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    return f"{days} days ago"
