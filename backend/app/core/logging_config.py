"""Logging du service : fichiers tournants (général, erreurs) et journal JSON des données lourdes."""

import glob
import json
import logging
import logging.handlers
import os
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel

from app.core.settings import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
RETENTION_DAYS = 30


class CustomJSONEncoder(json.JSONEncoder):
    """Encodeur JSON : modèles Pydantic (avec alias) et dates."""

    def default(self, obj):
        if isinstance(obj, BaseModel):
            return obj.model_dump(mode="json", by_alias=True)
        elif isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


class DataLogger:
    """Journal des données lourdes (soumissions, appels IA) en JSON.

    Description:
        Un fichier par jour, `{YYYY-MM-DD}-data.json`, contenant un tableau JSON valide
        d'entrées `{datetime, calling_context, user_data, data}`.
    """

    def __init__(self, logs_dir: str = "logs"):
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    def _file_for(self, moment: datetime) -> Path:
        return self.logs_dir / f"{moment:%Y-%m-%d}-data.json"

    def log_data(
        self,
        calling_context: str,
        data: Dict[str, Any],
        user_data: Optional[Dict[str, Any]] = None
    ) -> None:
        """Ajoute une entrée au fichier JSON du jour."""
        moment = datetime.now()
        json_file = self._file_for(moment)

        entries: Any = []
        if json_file.exists():
            try:
                with open(json_file, "r", encoding="utf-8") as f:
                    entries = json.load(f)
            except json.JSONDecodeError:
                entries = None
            if not isinstance(entries, list):
                # Fichier illisible : mis de côté tel quel, un nouveau tableau démarre
                json_file.replace(json_file.with_name(f"{json_file.name}.{moment:%H%M%S%f}.corrupt"))
                entries = []

        entries.append(
            {
                "datetime": moment.isoformat(),
                "calling_context": calling_context,
                "user_data": user_data or {},
                "data": data,
            }
        )
        with open(json_file, "w", encoding="utf-8") as f:
            json.dump(entries, f, cls=CustomJSONEncoder, ensure_ascii=False)


def _rotating_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=path,
        when="midnight",
        interval=1,
        encoding="utf-8"
    )
    handler.suffix = "%Y-%m-%d"
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def _configure(name: str, level: int, path: Path, console: bool) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:  # Éviter les doublons
        logger.addHandler(_rotating_handler(path, level))
        if console:
            stream = logging.StreamHandler()
            stream.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(stream)
    return logger


def setup_logging(logs_dir: Path | None = None) -> tuple[logging.Logger, logging.Logger, DataLogger]:
    """Configure les loggers du service.

    Description:
        - `lostkings.generic` (INFO+) → `generic.log`
        - `lostkings.errors` (ERROR+) → `errors.log`
        - rotation à minuit, rétention de 30 jours
        - copie sur la console en environnement `development`

    Args:
        logs_dir: Dossier des logs (par défaut `settings.logs_dir`).

    Returns:
        tuple: (logger_generic, logger_errors, data_logger)
    """
    settings = get_settings()
    logs_dir = Path(logs_dir or settings.logs_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    cleanup_old_logs(logs_dir)

    console = settings.environment == "development"
    generic_logger = _configure("lostkings.generic", logging.INFO, logs_dir / "generic.log", console)
    error_logger = _configure("lostkings.errors", logging.ERROR, logs_dir / "errors.log", console)

    return generic_logger, error_logger, DataLogger(str(logs_dir))


def cleanup_old_logs(logs_dir: Path, retention_days: int = RETENTION_DAYS) -> None:
    """Supprime les logs plus anciens que retention_days."""
    cutoff_str = (datetime.now() - timedelta(days=retention_days)).strftime("%Y-%m-%d")

    patterns = [
        f"{logs_dir}/*-data.json",
        f"{logs_dir}/*-data.json.*.corrupt",
        f"{logs_dir}/generic.log.*",
        f"{logs_dir}/errors.log.*"
    ]

    for pattern in patterns:
        for file_path in glob.glob(pattern):
            file_name = os.path.basename(file_path)

            # La date est soit le préfixe (fichiers data) soit le suffixe de rotation
            date_part = file_name[:10] if "-data.json" in file_name else file_name[-10:]
            try:
                datetime.strptime(date_part, "%Y-%m-%d")
            except ValueError:
                continue
            if date_part < cutoff_str:
                try:
                    os.remove(file_path)
                except OSError:
                    continue


# Instance globale (lazy initialization)
_loggers: Optional[tuple[logging.Logger, logging.Logger, DataLogger]] = None


def get_loggers() -> tuple[logging.Logger, logging.Logger, DataLogger]:
    """Retourne les loggers configurés (singleton)."""
    global _loggers
    if _loggers is None:
        _loggers = setup_logging()
    return _loggers


def extract_user_data(owner_id: Optional[str] = None, request=None) -> Dict[str, Any]:
    """Contexte utilisateur d'une entrée de log : identifiant opaque, IP, user-agent."""
    user_data: Dict[str, Any] = {}
    if owner_id:
        user_data["owner_id"] = owner_id

    client = getattr(request, "client", None)
    if client:
        user_data["ip"] = client.host
    headers = getattr(request, "headers", None)
    if headers is not None and headers.get("user-agent"):
        user_data["user_agent"] = headers.get("user-agent")

    return user_data
