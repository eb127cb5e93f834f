"""Unit tests for due-date classification"""

import threading
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from lufashion_ledger.domain.models import Customer, DueStatus
from lufashion_ledger.domain.overdue import (
    OverdueWatcher,
    classify,
    days_overdue,
    list_due_soon,
    list_overdue,
)


TODAY = date(2024, 6, 15)


def make_customer(name: str = "Ana", due_in: int | None = 0, pending: int = 10000, customer_id: str | None = None) -> Customer:
    return Customer(
        id=customer_id or name.lower(),
        name=name,
        created_at=datetime(2024, 6, 1, tzinfo=timezone.utc),
        total_billed_cents=pending,
        pending_balance_cents=pending,
        due_date=None if due_in is None else TODAY + timedelta(days=due_in),
    )


def test_due_today_is_neither_overdue_nor_due_soon():
    assert classify(make_customer(due_in=0), TODAY) == DueStatus.NORMAL


def test_due_yesterday_with_pending_is_overdue_by_one_day():
    customer = make_customer(due_in=-1)

    assert classify(customer, TODAY) == DueStatus.OVERDUE
    entries = list_overdue([customer], TODAY)
    assert len(entries) == 1
    assert entries[0].days_overdue == 1


def test_due_yesterday_fully_paid_is_not_overdue():
    customer = make_customer(due_in=-1, pending=0)

    assert classify(customer, TODAY) == DueStatus.NORMAL
    assert list_overdue([customer], TODAY) == []


def test_no_due_date_is_always_normal():
    assert classify(make_customer(due_in=None), TODAY) == DueStatus.NORMAL
    assert classify(make_customer(due_in=None, pending=0), TODAY) == DueStatus.NORMAL


def test_due_soon_window():
    """1 to 3 days ahead is due soon, regardless of balance"""
    assert classify(make_customer(due_in=1), TODAY) == DueStatus.DUE_SOON
    assert classify(make_customer(due_in=3), TODAY) == DueStatus.DUE_SOON
    assert classify(make_customer(due_in=3, pending=0), TODAY) == DueStatus.DUE_SOON
    assert classify(make_customer(due_in=4), TODAY) == DueStatus.NORMAL


def test_due_soon_window_is_configurable():
    assert classify(make_customer(due_in=5), TODAY, due_soon_days=7) == DueStatus.DUE_SOON


def test_days_overdue_counts_whole_days():
    assert days_overdue(TODAY - timedelta(days=1), TODAY) == 1
    assert days_overdue(TODAY - timedelta(days=30), TODAY) == 30


def test_overdue_sorted_oldest_first():
    customers = [
        make_customer("Bia", due_in=-2),
        make_customer("Carla", due_in=-10),
        make_customer("Ana", due_in=-2),
        make_customer("Duda", due_in=2),
    ]

    entries = list_overdue(customers, TODAY)

    assert [e.customer.name for e in entries] == ["Carla", "Ana", "Bia"]
    assert [e.days_overdue for e in entries] == [10, 2, 2]


def test_list_due_soon_sorted_by_due_date():
    customers = [
        make_customer("Ana", due_in=3),
        make_customer("Bia", due_in=1),
        make_customer("Carla", due_in=-1),
        make_customer("Duda", due_in=10),
    ]

    assert [c.name for c in list_due_soon(customers, TODAY)] == ["Bia", "Ana"]


def test_watcher_reports_only_new_overdue_customers():
    watcher = OverdueWatcher()
    ana = make_customer("Ana", due_in=-1)
    bia = make_customer("Bia", due_in=1)

    assert [e.customer.name for e in watcher.poll([ana, bia], TODAY)] == ["Ana"]
    assert watcher.poll([ana, bia], TODAY) == []

    # Two days later Bia's due date has passed too
    later = TODAY + timedelta(days=2)
    assert [e.customer.name for e in watcher.poll([ana, bia], later)] == ["Bia"]


def test_watcher_fires_again_after_customer_leaves_overdue():
    watcher = OverdueWatcher()
    ana = make_customer("Ana", due_in=-1)
    paid = replace(ana, pending_balance_cents=0, settled_amount_cents=10000)

    assert len(watcher.poll([ana], TODAY)) == 1
    assert watcher.poll([paid], TODAY) == []
    assert len(watcher.poll([ana], TODAY)) == 1


def test_watcher_release_reports_customer_again():
    watcher = OverdueWatcher()
    ana = make_customer("Ana", due_in=-1)

    assert len(watcher.poll([ana], TODAY)) == 1
    watcher.release(ana.id)
    assert [e.customer.name for e in watcher.poll([ana], TODAY)] == ["Ana"]
    assert watcher.poll([ana], TODAY) == []


def test_watcher_concurrent_polls_report_each_customer_once():
    watcher = OverdueWatcher()
    customers = [make_customer(f"C{i}", due_in=-1) for i in range(50)]
    reported = []
    barrier = threading.Barrier(8)

    def poll():
        barrier.wait()
        reported.extend(e.customer.id for e in watcher.poll(customers, TODAY))

    threads = [threading.Thread(target=poll) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(reported) == sorted(c.id for c in customers)
