from datetime import date

from wiptrack.domain.stages import QA_DOCUMENT_STEPS, ClockPolicy, StageRule
from wiptrack.domain.state import BatchState, StepState
from wiptrack.services.classifier import classify, classify_state, describe_steps

DAY0 = date(2024, 1, 8)
DAY1 = date(2024, 1, 9)


def test_finished_step_with_unqueued_next_is_waiting(make_entry):
    entries = [
        make_entry("B1", "Mixing", order=1, queued=DAY0, start=DAY0, end=DAY1),
        make_entry("B1", "Mixing", order=2),
    ]
    assert classify_state(entries) is BatchState.WAITING


def test_open_step_is_in_progress_with_working_day_duration(make_entry, calendar):
    entries = [make_entry("B2", "Coating", queued=DAY0, start=DAY0)]
    status = classify(entries, calendar=calendar, stage="Coating")
    assert status.state is BatchState.IN_PROGRESS
    assert status.duration == calendar.working_days_to_today(DAY0) == 4
    assert status.clock_start == DAY0


def test_all_finished_is_completed(make_entry):
    entries = [
        make_entry("B3", "QC", queued=DAY0, start=DAY0, end=DAY1),
        make_entry("B3", "QC", end=DAY1, display=True),
    ]
    assert classify_state(entries) is BatchState.COMPLETED


def test_nothing_queued_is_not_started(make_entry, calendar):
    entries = [make_entry("B4", "QC", start=DAY0), make_entry("B4", "QC")]
    status = classify(entries, calendar=calendar)
    assert status.state is BatchState.NOT_STARTED
    assert status.duration == 0
    assert not status.is_started
    assert status.as_dict()["duration"] is None


def test_queued_but_unstarted_is_not_started(make_entry):
    entries = [make_entry("B5", "Cetak", queued=DAY0)]
    assert classify_state(entries) is BatchState.NOT_STARTED


def test_display_flag_forces_in_progress_after_date_checks(make_entry):
    entries = [make_entry("B6", "Cetak", queued=DAY0, display=True)]
    assert classify_state(entries) is BatchState.IN_PROGRESS

    # no queued entries: the flag does not apply
    entries = [make_entry("B6", "Cetak", display=True)]
    assert classify_state(entries) is BatchState.NOT_STARTED


def test_waiting_needs_a_finished_queued_step_and_an_unqueued_step(make_entry):
    only_queued = [
        make_entry("B7", queued=DAY0, start=DAY0, end=DAY1),
        make_entry("B7", queued=DAY1),
    ]
    assert classify_state(only_queued) is not BatchState.WAITING


def test_empty_entries_are_not_started(calendar):
    assert classify_state([]) is BatchState.NOT_STARTED
    assert classify([], calendar=calendar).state is BatchState.NOT_STARTED


def test_duration_clock_is_earliest_queue_time(make_entry, calendar):
    entries = [
        make_entry("B8", order=2, queued=date(2024, 1, 10), start=date(2024, 1, 10)),
        make_entry("B8", order=1, queued=DAY0, start=DAY0, end=DAY1),
    ]
    status = classify(entries, calendar=calendar)
    assert status.clock_start == DAY0
    assert status.completed_steps == 1
    assert status.total_steps == 2


def test_calendar_mode_counts_plain_days(make_entry, calendar):
    entries = [make_entry("B9", queued=date(2024, 1, 5), start=date(2024, 1, 5))]
    assert classify(entries, calendar=calendar, mode="calendar").duration == 7
    assert classify(entries, calendar=calendar).duration == 5


def _qa_entries(make_entry, queued_steps):
    rows = []
    for index, step in enumerate(QA_DOCUMENT_STEPS, start=1):
        queued = queued_steps.get(step)
        rows.append(make_entry("Q1", "QA", step=step, order=index, queued=queued, start=queued))
    return rows


def test_qa_gate_requires_every_document_check(make_entry, calendar):
    rule = StageRule(required_steps=QA_DOCUMENT_STEPS, clock=ClockPolicy.LATEST)
    partial = _qa_entries(make_entry, {QA_DOCUMENT_STEPS[0]: DAY0})
    assert classify(partial, calendar=calendar, rule=rule).state is BatchState.NOT_STARTED

    queued = {step: DAY0 for step in QA_DOCUMENT_STEPS}
    queued[QA_DOCUMENT_STEPS[2]] = date(2024, 1, 10)
    status = classify(_qa_entries(make_entry, queued), calendar=calendar, rule=rule)
    assert status.state is BatchState.IN_PROGRESS
    assert status.clock_start == date(2024, 1, 10)
    assert status.duration == 2


def test_step_states_and_ordering(make_entry):
    entries = [
        make_entry("B1", step="Timbang", order=1, queued=DAY0, start=DAY0, end=DAY1),
        make_entry("B1", step="Mixing", order=2, queued=DAY1, start=DAY1),
        make_entry("B1", step="Granulasi", order=3),
    ]
    steps = describe_steps(entries)
    assert [s.step_name for s in steps] == ["Mixing", "Granulasi", "Timbang"]
    assert [s.state for s in steps] == [StepState.IN_PROGRESS, StepState.WAITING, StepState.COMPLETED]
    assert steps[0].as_dict()["start_date"] == "2024-01-09T08:00:00"


def test_unstarted_batch_steps_are_not_started(make_entry):
    steps = describe_steps([make_entry("B2", step="Timbang"), make_entry("B2", step="Mixing", order=2)])
    assert {s.state for s in steps} == {StepState.NOT_STARTED}


def test_batch_date_is_carried_onto_the_status(make_entry, calendar):
    entries = [
        make_entry("B1", "Coating", order=1),
        make_entry("B1", "Coating", order=2, queued=DAY0, start=DAY0, batch_date=date(2024, 1, 2)),
    ]
    status = classify(entries, calendar=calendar, stage="Coating")
    assert status.batch_date == date(2024, 1, 2)
    assert status.as_dict()["batch_date"] == "2024-01-02"
    assert classify([make_entry("B2")], calendar=calendar).as_dict()["batch_date"] is None
