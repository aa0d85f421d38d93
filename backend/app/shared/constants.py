"""Constantes partagées pour l'application."""

# Archétypes du journal quotidien : (clé, titre, invite d'écriture)
ARCHETYPES = (
    ("king", "King", "Today I sharpened my masculine King by..."),
    ("priest", "Priest", "Today I practiced my masculine Priest by..."),
    ("poet", "Poet", "Today I showed my masculine Poet by..."),
    ("jester", "Jester", "Today I fed my masculine Jester by..."),
    ("warrior", "Warrior", "Today I trained my masculine Warrior by..."),
)
ARCHETYPE_KEYS = tuple(key for key, _, _ in ARCHETYPES)
ARCHETYPE_TITLES = {key: title for key, title, _ in ARCHETYPES}

# Clés de documents
DAY_DOC_PREFIX = "Day-"  # identifiant d'un enregistrement : Day-{day}
PUBLIC_STATUS_COMPLETE = "Complete"

# Collections (préfixées par l'app_id)
CHALLENGE_LOGS_COLLECTION = "challenge_logs"
DAILY_STATUS_COLLECTION = "daily_status"

# Analyse IA
ANALYSIS_ENTRY_SEPARATOR = "\n---\n"
ANALYSIS_MIN_CHARS = 50  # en dessous, pas assez d'historique pour coacher
