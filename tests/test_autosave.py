"""
Autosave indicator tests: debounce, cancellation and stale settle callbacks.
"""

import threading

from apitherapy.application.autosave import AutosaveIndicator, ThreadingScheduler


def test_begin_raises_indicator_and_schedules_settle(indicator, scheduler):
    indicator.begin()
    assert indicator.is_saving is True
    assert indicator.has_pending is True
    assert [t.delay for t in scheduler.live_tasks] == [0.4]


def test_settle_lowers_indicator_and_stamps_time(indicator, scheduler, clock):
    indicator.begin()
    clock.advance(milliseconds=400)
    scheduler.fire_all()

    assert indicator.is_saving is False
    assert indicator.has_pending is False
    assert indicator.last_saved_at == clock.now


def test_mutation_inside_settle_window_cancels_previous_task(indicator, scheduler):
    indicator.begin()
    first = scheduler.tasks[0]
    indicator.begin()

    assert first.cancelled is True
    assert len(scheduler.live_tasks) == 1
    assert indicator.is_saving is True


def test_stale_callback_never_lowers_indicator(indicator, scheduler):
    indicator.begin()
    stale = scheduler.tasks[0]
    indicator.begin()

    # A cancelled timer that already started running still calls back
    stale.callback()
    assert indicator.is_saving is True
    assert indicator.last_saved_at is None

    scheduler.fire_all()
    assert indicator.is_saving is False
    assert indicator.last_saved_at is not None


def test_cancel_drops_pending_transition(indicator, scheduler):
    indicator.begin()
    task = scheduler.tasks[0]
    indicator.cancel()

    assert task.cancelled is True
    assert indicator.is_saving is False
    task.callback()
    assert indicator.last_saved_at is None


def test_threading_scheduler_fires_callback():
    fired = threading.Event()
    ThreadingScheduler().call_later(0.01, fired.set)
    assert fired.wait(timeout=2)


def test_threading_scheduler_cancel_prevents_callback():
    fired = threading.Event()
    task = ThreadingScheduler().call_later(0.2, fired.set)
    task.cancel()
    assert not fired.wait(timeout=0.4)


def test_indicator_with_real_timer_settles():
    indicator = AutosaveIndicator(ThreadingScheduler(), settle_seconds=0.01)
    indicator.begin()
    for _ in range(200):
        if not indicator.is_saving:
            break
        threading.Event().wait(0.01)
    assert indicator.is_saving is False
    assert indicator.last_saved_at is not None
