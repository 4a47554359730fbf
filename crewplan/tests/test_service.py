"""Tests for ScheduleService writes over a real SQLite file."""

from __future__ import annotations

from datetime import date

import pytest

from conflict_core import TIME_OVERLAP, UNAVAILABLE, InvalidInputError
from conflict_core.io import connect
from crewplan import ScheduleConflictError, ScheduleRepository, ScheduleService
from crewplan.storage import JOB_SCHEDULED, JOB_UNSCHEDULED

MONDAY = "2024-01-15"
SUNDAY = "2024-01-21"


def _entry(start, end, day=MONDAY, **extra):
    return {"workerId": "W", "date": day, "startTime": start, "endTime": end, **extra}


@pytest.fixture
def repo(tmp_path):
    conn = connect(tmp_path / "crewplan.db")
    yield ScheduleRepository(conn)
    conn.close()


@pytest.fixture
def service(repo):
    service = ScheduleService(repo)
    service.register_worker("W", max_hours_per_week=40)
    service.set_availability(
        "W",
        [{"dayOfWeek": d, "startTime": "08:00", "endTime": "17:00"} for d in range(1, 6)],
    )
    return service


class TestCreateEntry:
    def test_clean_entry_is_persisted(self, service, repo):
        outcome = service.create_entry(_entry("09:00", "11:00", serviceJobId="job-1"))
        assert outcome.result.conflicts == []
        assert repo.get_entry(outcome.entry.id) == outcome.entry
        assert repo.get_job_status("job-1") == JOB_SCHEDULED

    def test_warning_does_not_block(self, service, repo):
        outcome = service.create_entry(_entry("10:00", "12:00", day=SUNDAY))
        assert outcome.result.has_warning is True
        assert outcome.result.conflicts[0].type == UNAVAILABLE
        assert repo.get_entry(outcome.entry.id) is not None
        payload = outcome.to_dict()
        assert payload["entry"]["date"] == SUNDAY
        assert payload["conflictCheck"]["hasWarning"] is True

    def test_overlap_rejects_and_writes_nothing(self, service, repo):
        service.create_entry(_entry("09:00", "11:00", serviceJobId="job-1"))
        with pytest.raises(ScheduleConflictError) as excinfo:
            service.create_entry(_entry("10:00", "12:00", serviceJobId="job-2"))
        assert str(excinfo.value).startswith("schedule conflict: ")
        assert excinfo.value.result.conflicts[0].type == TIME_OVERLAP
        assert len(repo.list_entries(worker_id="W")) == 1
        assert repo.get_job_status("job-2") is None

    def test_snake_case_fields_accepted(self, service):
        outcome = service.create_entry(
            {"worker_id": "W", "date": MONDAY, "start_time": "13:00", "end_time": "14:00", "notes": "gate code 41"}
        )
        assert outcome.entry.notes == "gate code 41"

    def test_end_before_start_rejected(self, service):
        with pytest.raises(InvalidInputError, match="must be after"):
            service.create_entry(_entry("12:00", "12:00"))

    def test_unknown_field_rejected(self, service):
        with pytest.raises(InvalidInputError, match="unknown"):
            service.create_entry(_entry("09:00", "10:00", colour="red"))

    def test_localized_rejection(self, repo, service):
        service.create_entry(_entry("09:00", "11:00"))
        italian = ScheduleService(repo, locale="it")
        with pytest.raises(ScheduleConflictError, match="Sovrapposizione"):
            italian.create_entry(_entry("10:00", "12:00"))


class TestUpdateEntry:
    def test_update_ignores_own_row(self, service):
        created = service.create_entry(_entry("09:00", "11:00")).entry
        outcome = service.update_entry(created.id, {"endTime": "11:30"})
        assert outcome.result.conflicts == []
        assert outcome.entry.end_time == "11:30"
        assert outcome.entry.start_time == "09:00"

    def test_update_into_other_entry_rejected(self, service, repo):
        service.create_entry(_entry("09:00", "11:00"))
        second = service.create_entry(_entry("13:00", "14:00")).entry
        with pytest.raises(ScheduleConflictError):
            service.update_entry(second.id, {"startTime": "10:30"})
        assert repo.get_entry(second.id).start_time == "13:00"

    def test_moving_job_releases_previous(self, service, repo):
        created = service.create_entry(_entry("09:00", "11:00", serviceJobId="job-1")).entry
        service.update_entry(created.id, {"serviceJobId": "job-2"})
        assert repo.get_job_status("job-1") == JOB_UNSCHEDULED
        assert repo.get_job_status("job-2") == JOB_SCHEDULED

    def test_missing_entry(self, service):
        with pytest.raises(KeyError):
            service.update_entry("entry-missing", {"notes": "x"})


class TestDeleteEntry:
    def test_last_entry_reverts_job(self, service, repo):
        created = service.create_entry(_entry("09:00", "11:00", serviceJobId="job-1")).entry
        deleted = service.delete_entry(created.id)
        assert deleted.id == created.id
        assert repo.get_entry(created.id) is None
        assert repo.get_job_status("job-1") == JOB_UNSCHEDULED

    def test_job_with_remaining_entries_stays_scheduled(self, service, repo):
        first = service.create_entry(_entry("09:00", "11:00", serviceJobId="job-1")).entry
        service.create_entry(_entry("13:00", "15:00", serviceJobId="job-1"))
        service.delete_entry(first.id)
        assert repo.get_job_status("job-1") == JOB_SCHEDULED

    def test_missing_entry(self, service):
        with pytest.raises(KeyError, match="not found"):
            service.delete_entry("entry-missing")


class TestBulk:
    def test_bulk_create_all_or_nothing(self, service, repo):
        with pytest.raises(ScheduleConflictError) as excinfo:
            service.bulk_create([_entry("12:00", "14:00"), _entry("13:00", "15:00")])
        assert excinfo.value.index == 1
        assert str(excinfo.value).startswith("entry 1: schedule conflict: ")
        assert repo.list_entries(worker_id="W") == []

    def test_bulk_create_persists_with_warnings(self, service, repo):
        outcomes = service.bulk_create([_entry("09:00", "10:00"), _entry("09:00", "10:00", day=SUNDAY)])
        assert [o.result.has_warning for o in outcomes] == [False, True]
        assert len(repo.list_entries(worker_id="W")) == 2

    def test_check_bulk_uses_configured_default(self, repo, service):
        candidates = [_entry("12:00", "14:00"), _entry("13:00", "15:00")]
        assert service.check_bulk(candidates) == []
        strict = ScheduleService(repo, batch_cross_check=True)
        assert [f.index for f in strict.check_bulk(candidates)] == [1]
        assert strict.check_bulk(candidates, include_batch_peers=False) == []


class TestRoute:
    def test_reorder(self, service):
        a = service.create_entry(_entry("09:00", "10:00")).entry
        b = service.create_entry(_entry("11:00", "12:00")).entry
        c = service.create_entry(_entry("13:00", "14:00")).entry
        route = service.reorder_route("W", MONDAY, [c.id, a.id, b.id])
        assert [e.id for e in route] == [c.id, a.id, b.id]
        assert [e.route_order for e in route] == [0, 1, 2]

    def test_reorder_rejects_foreign_entries(self, service):
        a = service.create_entry(_entry("09:00", "10:00")).entry
        other_day = service.create_entry(_entry("09:00", "10:00", day="2024-01-16")).entry
        with pytest.raises(ValueError, match=other_day.id):
            service.reorder_route("W", date(2024, 1, 15), [a.id, other_day.id])


class TestWorkers:
    def test_register_updates_cap(self, service, repo):
        service.register_worker("W", max_hours_per_week=20, employee_code="E-7")
        worker = repo.get_worker("W")
        assert worker.max_hours_per_week == 20.0
        assert worker.employee_code == "E-7"
        assert repo.store.find_worker_cap("W") == 20.0

    def test_register_rejects_non_positive_cap(self, service):
        with pytest.raises(ValueError):
            service.register_worker("V", max_hours_per_week=0)

    def test_availability_replaced(self, service, repo):
        rows = service.set_availability("W", [{"day_of_week": 0, "start_time": "10:00", "end_time": "14:00"}])
        assert [(a.day_of_week, a.start_time) for a in rows] == [(0, "10:00")]
        assert repo.store.find_availability("W", 1) is None

    @pytest.mark.parametrize(
        "row",
        [
            {"dayOfWeek": 7, "startTime": "08:00", "endTime": "17:00"},
            {"dayOfWeek": "1", "startTime": "08:00", "endTime": "17:00"},
            {"dayOfWeek": 1, "startTime": "17:00", "endTime": "08:00"},
            {"dayOfWeek": 1, "startTime": "8am", "endTime": "17:00"},
        ],
    )
    def test_availability_validation(self, service, repo, row):
        with pytest.raises(InvalidInputError):
            service.set_availability("W", [row])
        assert len(repo.list_availability("W")) == 5

    def test_duplicate_day_rejected(self, service):
        row = {"dayOfWeek": 1, "startTime": "08:00", "endTime": "17:00"}
        with pytest.raises(InvalidInputError, match="duplicate"):
            service.set_availability("W", [row, row])

    def test_unknown_worker(self, service):
        with pytest.raises(KeyError):
            service.set_availability("nobody", [])


class TestUnknownWorker:
    def test_create_rejected(self, service, repo):
        with pytest.raises(KeyError, match="worker not found: ghost"):
            service.create_entry({**_entry("09:00", "10:00"), "workerId": "ghost"})
        assert repo.list_entries() == []

    def test_bulk_create_rejected(self, service, repo):
        with pytest.raises(KeyError, match="ghost"):
            service.bulk_create([_entry("09:00", "10:00"), {**_entry("11:00", "12:00"), "workerId": "ghost"}])
        assert repo.list_entries() == []

    def test_update_to_unknown_worker_rejected(self, service, repo):
        created = service.create_entry(_entry("09:00", "10:00")).entry
        with pytest.raises(KeyError, match="ghost"):
            service.update_entry(created.id, {"workerId": "ghost"})
        assert repo.get_entry(created.id).worker_id == "W"


class TestAvailableWorkers:
    @pytest.fixture
    def crew(self, service):
        service.register_worker("V", is_active=False)
        service.set_availability("V", [{"dayOfWeek": 1, "startTime": "08:00", "endTime": "12:00"}])
        service.register_worker("X", employee_code="E-2")
        service.set_availability("X", [{"dayOfWeek": 1, "startTime": "13:00", "endTime": "18:00"}])
        service.register_worker("Y")
        service.set_availability("Y", [{"dayOfWeek": 2, "startTime": "08:00", "endTime": "12:00"}])
        return service

    def test_active_workers_with_window_on_weekday(self, crew):
        available = crew.available_workers(MONDAY)
        assert [a.worker.id for a in available] == ["W", "X"]
        assert (available[1].availability.start_time, available[1].availability.end_time) == ("13:00", "18:00")

    def test_includes_entries_for_the_day(self, crew):
        entry = crew.create_entry(_entry("09:00", "10:00")).entry
        crew.create_entry(_entry("09:00", "10:00", day="2024-01-16"))
        [w, x] = crew.available_workers(date(2024, 1, 15))
        assert [e.id for e in w.entries] == [entry.id]
        assert x.entries == []

    def test_to_dict(self, crew):
        payload = crew.available_workers(MONDAY)[1].to_dict()
        assert payload["id"] == "X"
        assert payload["employeeCode"] == "E-2"
        assert payload["availability"]["dayOfWeek"] == 1
        assert payload["scheduleEntries"] == []

    def test_no_one_on_sunday(self, crew):
        assert crew.available_workers(SUNDAY) == []


class TestListEntries:
    def test_open_ended_ranges(self, service, repo):
        for day in ("2024-01-15", "2024-01-17", "2024-01-19"):
            service.create_entry(_entry("09:00", "10:00", day=day))
        since = repo.list_entries(start=date(2024, 1, 16))
        until = repo.list_entries(end=date(2024, 1, 17))
        assert [e.date.isoformat() for e in since] == ["2024-01-17", "2024-01-19"]
        assert [e.date.isoformat() for e in until] == ["2024-01-15", "2024-01-17"]
        assert len(repo.list_entries(start=date(2024, 1, 16), end=date(2024, 1, 18))) == 1
