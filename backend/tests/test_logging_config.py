# tests/test_logging_config.py
import json
import os
from datetime import datetime, timedelta

from app.core.logging_config import DataLogger, cleanup_old_logs


def test_log_data_appends_to_day_array(tmp_path):
    data_logger = DataLogger(str(tmp_path))

    data_logger.log_data("journal_submit", {"n": 1}, {"owner_id": "owner-1"})
    data_logger.log_data("journal_synthesis", {"n": 2})

    files = list(tmp_path.glob("*-data.json"))
    assert len(files) == 1
    entries = json.loads(files[0].read_text(encoding="utf-8"))
    assert [e["calling_context"] for e in entries] == ["journal_submit", "journal_synthesis"]
    assert entries[0]["user_data"] == {"owner_id": "owner-1"}
    assert entries[1]["user_data"] == {}


def test_truncated_day_file_is_kept_aside(tmp_path):
    data_logger = DataLogger(str(tmp_path))
    data_logger.log_data("a", {"n": 1})

    day_file = next(tmp_path.glob("*-data.json"))
    truncated = day_file.read_text(encoding="utf-8")[:-3]
    day_file.write_text(truncated, encoding="utf-8")

    data_logger.log_data("b", {"n": 2})

    # Le contenu abîmé reste intact à côté du nouveau tableau
    kept = list(tmp_path.glob("*-data.json.*.corrupt"))
    assert len(kept) == 1
    assert kept[0].read_text(encoding="utf-8") == truncated
    assert '"n": 1' in kept[0].read_text(encoding="utf-8")

    entries = json.loads(day_file.read_text(encoding="utf-8"))
    assert [e["data"] for e in entries] == [{"n": 2}]


def test_non_array_day_file_is_kept_aside(tmp_path):
    data_logger = DataLogger(str(tmp_path))
    day_file = tmp_path / f"{datetime.now():%Y-%m-%d}-data.json"
    day_file.write_text('{"not": "an array"}', encoding="utf-8")

    data_logger.log_data("c", {"n": 3})

    assert len(list(tmp_path.glob("*-data.json.*.corrupt"))) == 1
    assert json.loads(day_file.read_text(encoding="utf-8"))[0]["calling_context"] == "c"


def test_cleanup_old_logs(tmp_path):
    old = (datetime.now() - timedelta(days=40)).strftime("%Y-%m-%d")
    recent = datetime.now().strftime("%Y-%m-%d")
    names = [
        f"{old}-data.json",
        f"{old}-data.json.093000000000.corrupt",
        f"generic.log.{old}",
        f"{recent}-data.json",
        f"errors.log.{recent}",
    ]
    for name in names:
        (tmp_path / name).write_text("", encoding="utf-8")

    cleanup_old_logs(tmp_path)

    assert sorted(os.listdir(tmp_path)) == sorted([f"{recent}-data.json", f"errors.log.{recent}"])
