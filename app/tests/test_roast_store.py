"""Tests for the TTL holding store and its scheduled sweep"""

import threading

from apscheduler.schedulers.background import BackgroundScheduler

from roaster.schemas.roast import DataSummary, RoastResult
from roaster.services.roast_store import RoastStore
from roaster.services.scheduler_service import SWEEP_JOB_ID, HousekeepingScheduler

from fakes import FakeClock


def _result(text="roast") -> RoastResult:
    return RoastResult(text=text, summary=DataSummary(artists=["A"]))


def test_put_and_get():
    store = RoastStore(ttl_seconds=300, clock=FakeClock())
    key = store.put(_result())
    assert store.get(key) == _result()
    assert len(store) == 1


def test_entries_expire_after_ttl():
    clock = FakeClock()
    store = RoastStore(ttl_seconds=300, clock=clock)
    key = store.put(_result())

    clock.advance(300)
    assert store.get(key) is not None

    clock.advance(1)
    assert store.get(key) is None
    assert len(store) == 0


def test_sweep_evicts_only_expired():
    clock = FakeClock()
    store = RoastStore(ttl_seconds=300, clock=clock)
    old = store.put(_result("old"))
    clock.advance(200)
    fresh = store.put(_result("fresh"))
    clock.advance(150)

    assert store.sweep() == 1
    assert store.get(old) is None
    assert store.get(fresh).text == "fresh"
    assert store.sweep() == 0


def test_pop_removes_entry():
    store = RoastStore(clock=FakeClock())
    key = store.put(_result())
    assert store.pop(key) is not None
    assert store.pop(key) is None
    assert store.get("missing") is None


def test_concurrent_puts_and_sweeps():
    clock = FakeClock()
    store = RoastStore(ttl_seconds=300, clock=clock)

    def writer(prefix):
        for i in range(200):
            store.put(_result(), key=f"{prefix}-{i}")

    def sweeper():
        for _ in range(200):
            store.sweep()

    threads = [threading.Thread(target=writer, args=(p,)) for p in "abc"] + [threading.Thread(target=sweeper)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store) == 600


def test_scheduler_registers_single_sweep_job():
    scheduler = HousekeepingScheduler(BackgroundScheduler())
    store = RoastStore()

    scheduler.add_sweep_job(store, 300)
    scheduler.add_sweep_job(store, 60)
    scheduler.start()
    try:
        jobs = scheduler.get_scheduled_jobs()
        assert [j["id"] for j in jobs] == [SWEEP_JOB_ID]
        assert "0:01:00" in jobs[0]["trigger"]
    finally:
        scheduler.shutdown()
    assert not scheduler.running


def test_sweep_job_runs_store_sweep():
    clock = FakeClock()
    store = RoastStore(ttl_seconds=10, clock=clock)
    store.put(_result())
    clock.advance(11)

    assert HousekeepingScheduler._run_sweep(store) == 1
