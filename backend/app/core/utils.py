# backend/app/core/utils.py
# Fonctions temporelles basiques (naive local et aware UTC) et formats de date.

import datetime as dt
from zoneinfo import ZoneInfo

def now(tz_name: str | None = None):
    """Date/heure murale (naive).

    Description:
        Sans `tz_name`, retourne `datetime.now()` (heure locale du serveur). Avec un nom IANA,
        retourne l'heure murale de ce fuseau, sans timezone attachée. C'est cette heure qui
        fixe le jour du challenge.

    Args:
        tz_name: Fuseau IANA (ex. "America/New_York"), optionnel.

    Returns:
        datetime.datetime: Timestamp mural (naive).
    """
    if not tz_name:
        return dt.datetime.now()
    return dt.datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)

def utcnow():
    """Date/heure UTC (timezone-aware).

    Description:
        Retourne `datetime.now(timezone.utc)` avec timezone UTC attachée. Recommandé
        pour les horodatages persistés et les comparaisons.

    Returns:
        datetime.datetime: Timestamp UTC (aware).
    """
    return dt.datetime.now(dt.timezone.utc)

def epoch_ms(moment: dt.datetime | None = None) -> int:
    """Millisecondes depuis l'epoch (horodatage des enregistrements)."""
    moment = moment or utcnow()
    return int(moment.timestamp() * 1000)

def format_us_date(day: dt.date) -> str:
    """Date au format court `en-US` (M/D/YYYY, sans zéro de remplissage)."""
    return f"{day.month}/{day.day}/{day.year}"
