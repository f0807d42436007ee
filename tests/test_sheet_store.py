"""Tests for the spreadsheet-backed task and contractor store."""
from datetime import timedelta

import pytest
from openpyxl import load_workbook

from sitetasks.core.exceptions import ConflictError, NotFoundError, PartialWriteError, ValidationError
from sitetasks.models.contractor import Contractor
from sitetasks.models.task import TASK_HEADERS
from sitetasks.services.sheet_store import (
    CONTRACTORS_TAB,
    MASTER_TAB,
    TaskFilters,
    TaskIdClock,
)
from sitetasks.sheets.formulas import DAYS_OLD_FORMULA

from conftest import CREATED_AT, TODAY, FlakyWorkbookBackend, make_store


def add(store, project, title, **fields):
    data = {"project": project, "task_title": title}
    data.update(fields)
    return store.add_task(data).task_id


def test_task_id_clock_is_strictly_increasing():
    clock = TaskIdClock(now=lambda: CREATED_AT)
    first, second, third = clock(), clock(), clock()
    assert first == "2026-03-09T14:30:00.000Z"
    assert second == "2026-03-09T14:30:00.001Z"
    assert first < second < third


def test_task_id_clock_never_goes_backwards():
    times = iter([CREATED_AT, CREATED_AT - timedelta(seconds=5)])
    clock = TaskIdClock(now=lambda: next(times))
    assert clock() < clock()


def test_initialize_creates_master_and_contractors(store, backend):
    assert sorted(store.initialize()) == [CONTRACTORS_TAB, MASTER_TAB]
    assert store.initialize() == []
    assert backend.get_values(MASTER_TAB) == [TASK_HEADERS]
    assert backend.get_values(CONTRACTORS_TAB) == [["Name", "Email", "Phone", "Trade"]]


def test_add_task_writes_both_tabs(store, backend, sample_task):
    result = store.add_task(sample_task)

    assert result.project == "Oakwood Lot 12"
    assert result.task_id == "2026-03-09T14:30:00.000Z"
    assert set(backend.list_tabs()) == {MASTER_TAB, CONTRACTORS_TAB, "Oakwood Lot 12"}
    master_rows = backend.get_values(MASTER_TAB)
    project_rows = backend.get_values("Oakwood Lot 12")
    assert master_rows[0] == TASK_HEADERS
    assert master_rows[1] == project_rows[1]
    assert master_rows[1][:2] == [result.task_id, 7]


def test_round_trip_preserves_fields(store, sample_task):
    task_id = store.add_task(sample_task).task_id
    (task,) = store.get_tasks()

    assert task.task_id == task_id
    assert task.days_old == (TODAY - CREATED_AT.date()).days
    assert task.task_title == "Patch ceiling crack"
    assert task.task_details == "Crack above the island, about 2 ft"
    assert task.assigned_to == "Smith Drywall"
    assert task.priority == "High"
    assert task.due_date == "2026-03-20"
    assert task.photo_needed is True
    assert task.status == "Open"
    assert task.notes == "Check after paint"


def test_new_tasks_always_start_open(store):
    add(store, "Lot 3", "Fix door", status="Closed")
    assert store.get_tasks()[0].status == "Open"


@pytest.mark.parametrize("project", ["", "   ", MASTER_TAB, CONTRACTORS_TAB, "master tasks"])
def test_add_task_rejects_missing_or_reserved_project(store, backend, project):
    with pytest.raises(ValidationError):
        add(store, project, "Fix door")
    assert backend.list_tabs() == []


def test_add_task_rejects_unknown_priority(store, backend):
    with pytest.raises(ValidationError):
        add(store, "Lot 3", "Fix door", priority="Whenever")
    assert backend.list_tabs() == []


def test_sequential_adds_to_new_project_create_tab_once(store, backend):
    ids = [add(store, "Maple Court", f"Punch item {n}") for n in range(3)]

    assert backend.list_tabs().count("Maple Court") == 1
    assert len(backend.get_values("Maple Court")) == 4
    assert ids == sorted(ids)
    assert len(set(ids)) == 3


def test_filters_match_substrings_case_insensitively(store):
    add(store, "Oakwood Lot 12", "Paint trim", trade="Painting", assigned_to="Ace Painters")
    add(store, "Oak Ridge 4", "Hang doors", trade="Carpentry", assigned_to="Smith Carpentry")
    add(store, "Maple Court", "Grout tile", trade="Tile", assigned_to="Smith Tile")

    assert [t.task_title for t in store.get_tasks(TaskFilters(project="oak"))] == ["Paint trim", "Hang doors"]
    assert [t.task_title for t in store.get_tasks(TaskFilters(assigned_to="smith"))] == ["Hang doors", "Grout tile"]
    assert store.get_tasks(TaskFilters(project="  ")) == store.get_tasks()


def test_filters_combine_with_and(store):
    add(store, "Oakwood Lot 12", "Paint trim", assigned_to="Smith Painting")
    add(store, "Oak Ridge 4", "Hang doors", assigned_to="Smith Carpentry")
    add(store, "Maple Court", "Grout tile", assigned_to="Smith Tile")

    tasks = store.get_tasks(TaskFilters(project="oak", assigned_to="carpentry"))
    assert [task.task_title for task in tasks] == ["Hang doors"]


def test_status_filter_is_exact(store):
    first = add(store, "Lot 3", "Fix door")
    second = add(store, "Lot 3", "Fix window")
    add(store, "Lot 3", "Fix stairs")
    store.update_task(first, {"status": "Closed"})
    store.update_task(second, {"status": "In Progress"})

    assert [t.task_title for t in store.get_tasks(TaskFilters(status="Open"))] == ["Fix stairs"]
    assert [t.task_title for t in store.get_tasks(TaskFilters(status="closed"))] == ["Fix door"]
    assert [t.task_title for t in store.get_tasks(TaskFilters(status="completed"))] == ["Fix door"]


def test_get_tasks_without_master_tab(store):
    assert store.get_tasks() == []


def test_subcontractor_tasks_are_open_only(store):
    done = add(store, "Lot 3", "Fix door", assigned_to="Smith Drywall")
    add(store, "Lot 3", "Fix ceiling", assigned_to="Smith Drywall")
    add(store, "Lot 3", "Fix trim", assigned_to="Ace Painters")
    store.update_task(done, {"status": "completed"})

    assert [t.task_title for t in store.get_subcontractor_tasks("Smith Drywall")] == ["Fix ceiling"]


def test_update_task_changes_both_tabs(store, backend, workbook_path):
    task_id = add(store, "Lot 3", "Fix door", assigned_to="Smith Drywall")

    task = store.update_task(task_id, {"status": "completed", "notes": "Done Friday", "project": "Lot 9"})

    assert task.status == "Closed"
    assert task.project == "Lot 3"
    for title in (MASTER_TAB, "Lot 3"):
        row = backend.get_values(title)[1]
        assert row[0] == task_id
        assert row[11] == "Closed"
        assert row[13] == "Done Friday"
        assert load_workbook(workbook_path)[title]["B2"].value == DAYS_OLD_FORMULA
    assert "Lot 9" not in backend.list_tabs()


def test_update_task_keeps_unknown_columns(store, backend):
    store.initialize()
    backend.update_row(MASTER_TAB, 1, TASK_HEADERS + ["Inspector"])
    task_id = add(store, "Lot 3", "Fix door")
    row = backend.get_values(MASTER_TAB)[1]
    backend.update_row(MASTER_TAB, 2, row + [""] * (len(TASK_HEADERS) - len(row)) + ["Dana"])

    store.update_task(task_id, {"priority": "urgent"})

    row = backend.get_values(MASTER_TAB)[1]
    assert row[8] == "Urgent"
    assert row[14] == "Dana"


def test_update_unknown_task(store, sample_task):
    with pytest.raises(NotFoundError):
        store.update_task("2020-01-01T00:00:00.000Z", {"status": "Closed"})
    store.add_task(sample_task)
    with pytest.raises(NotFoundError):
        store.update_task("2020-01-01T00:00:00.000Z", {"status": "Closed"})


def test_update_rejects_bad_values(store):
    task_id = add(store, "Lot 3", "Fix door")
    with pytest.raises(ValidationError):
        store.update_task(task_id, {"status": "archived"})
    with pytest.raises(ValidationError):
        store.update_task("", {"status": "Closed"})
    assert store.get_tasks()[0].status == "Open"


def test_reads_tabs_with_reordered_columns(store, backend):
    backend.add_tab(MASTER_TAB)
    backend.write_header(MASTER_TAB, ["Task Title", "Project", "Status", "Timestamp"])
    backend.append_rows(MASTER_TAB, [["Seal window", "Lot 5", "Open", "2026-03-01T08:00:00.000Z"]])

    (task,) = store.get_tasks()
    assert task.task_id == "2026-03-01T08:00:00.000Z"
    assert task.project == "Lot 5"
    assert task.task_title == "Seal window"


def test_failed_project_write_is_reported(workbook_path):
    backend = FlakyWorkbookBackend(workbook_path, fail_append={"Lot 7"})
    store = make_store(backend)

    with pytest.raises(PartialWriteError) as excinfo:
        store.add_task({"project": "Lot 7", "task_title": "Fix door"})

    assert excinfo.value.written == [MASTER_TAB]
    assert excinfo.value.failed == ["Lot 7"]
    assert excinfo.value.task_id == "2026-03-09T14:30:00.000Z"
    assert len(backend.get_values(MASTER_TAB)) == 2
    assert len(backend.get_values("Lot 7")) == 1


def test_failed_project_update_is_reported(workbook_path):
    backend = FlakyWorkbookBackend(workbook_path)
    store = make_store(backend)
    task_id = add(store, "Lot 7", "Fix door")
    backend.fail_update.add("Lot 7")

    with pytest.raises(PartialWriteError) as excinfo:
        store.update_task(task_id, {"status": "Closed"})

    assert excinfo.value.failed == ["Lot 7"]
    assert backend.get_values(MASTER_TAB)[1][11] == "Closed"
    assert backend.get_values("Lot 7")[1][11] == "Open"


def test_create_project_tab(store, backend):
    assert store.create_project_tab("Lot 7") is True
    assert store.create_project_tab("Lot 7") is False
    assert backend.get_values("Lot 7") == [TASK_HEADERS]
    with pytest.raises(ValidationError):
        store.create_project_tab(CONTRACTORS_TAB)


def test_contractors(store):
    assert store.list_contractors() == []
    store.add_contractor(Contractor(name=" Smith Drywall ", email="smith@example.com", trade="Drywall"))
    store.add_contractor(Contractor(name="Ace Painters"))

    assert [c.name for c in store.list_contractors()] == ["Smith Drywall", "Ace Painters"]
    assert store.get_contractor_emails() == {"Smith Drywall": "smith@example.com"}


def test_duplicate_contractor(store):
    store.add_contractor(Contractor(name="Smith Drywall"))
    with pytest.raises(ConflictError):
        store.add_contractor(Contractor(name="smith drywall"))
    with pytest.raises(ValidationError):
        store.add_contractor(Contractor(name="  "))


def test_project_matches_existing_tab_case_insensitively(store, backend):
    store.create_project_tab("Oak Street")

    first = store.add_task({"project": "oak street", "task_title": "Fix door"})
    store.add_task({"project": "OAK STREET", "task_title": "Fix window"})

    assert first.project == "Oak Street"
    assert sorted(backend.list_tabs()) == [CONTRACTORS_TAB, MASTER_TAB, "Oak Street"]
    assert len(backend.get_values("Oak Street")) == 3
    assert len(backend.get_values(MASTER_TAB)) == 3
    assert store.create_project_tab("OAK STREET") is False

    task = store.update_task(first.task_id, {"status": "Closed"})
    assert task.project == "Oak Street"
    assert backend.get_values("Oak Street")[1][11] == "Closed"


def test_blank_status_and_priority_are_ignored_on_update(store):
    task_id = add(store, "Lot 3", "Fix door", priority="Urgent")
    store.update_task(task_id, {"status": "Closed"})

    task = store.update_task(task_id, {"status": "", "priority": "  ", "notes": "Rechecked"})

    assert task.status == "Closed"
    assert task.priority == "Urgent"
    (stored,) = store.get_tasks()
    assert (stored.status, stored.priority, stored.notes) == ("Closed", "Urgent", "Rechecked")
