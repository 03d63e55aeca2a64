from kinfold.scheduler import ManualScheduler


def test_manual_scheduler_runs_tasks_in_due_order():
    scheduler = ManualScheduler()
    calls = []
    scheduler.call_later(2.0, lambda: calls.append("late"))
    scheduler.call_later(1.0, lambda: calls.append("early"))
    scheduler.call_later(1.0, lambda: calls.append("early-second"))
    assert scheduler.pending == 3
    assert scheduler.next_due() == 1.0

    assert scheduler.advance(1.5) == 2
    assert calls == ["early", "early-second"]
    assert scheduler.now == 1.5

    assert scheduler.run_all() == 1
    assert calls[-1] == "late"
    assert scheduler.pending == 0


def test_tasks_scheduled_while_running_wait_for_their_delay():
    scheduler = ManualScheduler()
    calls = []

    def first():
        calls.append("first")
        scheduler.call_later(1.0, lambda: calls.append("second"))

    scheduler.call_later(0.0, first)
    assert scheduler.advance(0.5) == 1
    assert calls == ["first"]
    assert scheduler.advance(1.0) == 1
    assert calls == ["first", "second"]
