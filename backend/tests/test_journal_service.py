"""Tests for journal persistence and the public status projection."""

import pytest

from app.core.errors import PersistenceFailure
from app.models.challenge_record import PublicStatus
from conftest import TEST_APP_ID, make_record

LOGS = f"{TEST_APP_ID}.challenge_logs"
STATUS = f"{TEST_APP_ID}.daily_status"


class TestSaveRecord:
    @pytest.mark.asyncio
    async def test_writes_private_record_and_public_status(self, journal, fake_db):
        status = await journal.save_record(make_record(day=3, king="Set the agenda"))

        record_doc = fake_db[LOGS].docs["owner-1/Day-3"]
        assert record_doc["doc_id"] == "Day-3"
        assert record_doc["ownerId"] == "owner-1"
        assert record_doc["entries"]["king"] == "Set the agenda"

        status_doc = fake_db[STATUS].docs["owner-1-Day-3"]
        assert status_doc["status"] == "Complete"
        assert status_doc["day"] == 3
        assert status == PublicStatus(owner_id="owner-1", day=3, date="11/3/2025", timestamp=status.timestamp)

    @pytest.mark.asyncio
    async def test_same_day_twice_keeps_one_document(self, journal, fake_db):
        await journal.save_record(make_record(day=4, king="first"))
        await journal.save_record(make_record(day=4, king="second"))

        assert list(fake_db[LOGS].docs) == ["owner-1/Day-4"]
        assert len(fake_db[STATUS].docs) == 1

    @pytest.mark.asyncio
    async def test_public_write_failure_propagates(self, journal, fake_db):
        fake_db.fail_writes_on.add(STATUS)
        with pytest.raises(PersistenceFailure):
            await journal.save_record(make_record(day=3, king="x"))


class TestListRecords:
    @pytest.mark.asyncio
    async def test_sorted_by_day_regardless_of_write_order(self, journal):
        for day in (5, 2, 9):
            await journal.save_record(make_record(day=day, poet=f"day {day}"))
        await journal.save_record(make_record(owner_id="someone-else", day=1, poet="not mine"))

        records = await journal.list_records("owner-1")
        assert [r.day for r in records] == [2, 5, 9]

    def test_day_is_read_from_document_id(self, journal):
        record = journal.record_from_document(
            {
                "_id": "owner-1/Day-7",
                "doc_id": "Day-7",
                "date": "11/7/2025",
                "entries": {"jester": "Told a joke"},
                "timestamp": 1,
                "ownerId": "owner-1",
            }
        )
        assert record.day == 7
        assert record.entries.jester == "Told a joke"

    @pytest.mark.asyncio
    async def test_subscription_delivers_sorted_records(self, journal):
        received = []

        async def on_records(records):
            received.append([r.day for r in records])

        subscription = await journal.subscribe_records("owner-1", on_records)
        await journal.save_record(make_record(day=6, king="a"))
        await journal.save_record(make_record(day=1, king="b"))
        subscription.close()

        assert received == [[], [6], [1, 6]]


class TestPublicStatus:
    @pytest.mark.asyncio
    async def test_listed_by_day_then_owner(self, journal):
        await journal.save_record(make_record(owner_id="zed", day=2, king="x"))
        await journal.save_record(make_record(owner_id="amy", day=2, king="x"))
        await journal.save_record(make_record(owner_id="amy", day=1, king="x"))

        statuses = await journal.list_public_status()
        assert [(s.day, s.owner_id) for s in statuses] == [(1, "amy"), (2, "amy"), (2, "zed")]

        day_two = await journal.list_public_status(day=2)
        assert [s.owner_id for s in day_two] == ["amy", "zed"]

    @pytest.mark.asyncio
    async def test_rebuild_from_private_records(self, journal, fake_db):
        for day in (1, 2, 3):
            await journal.save_record(make_record(day=day, warrior="pushups"))
        fake_db[STATUS].docs.clear()

        written = await journal.rebuild_public_status("owner-1")

        assert written == 3
        assert sorted(fake_db[STATUS].docs) == ["owner-1-Day-1", "owner-1-Day-2", "owner-1-Day-3"]
