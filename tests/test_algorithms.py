import pytest

from schedsim.algorithms import (
    FCFSPolicy,
    PriorityPolicy,
    RoundRobinPolicy,
    SJFPolicy,
    SRTFPolicy,
    get_policy,
    normalize_algorithm,
)
from schedsim.models import Process, ProcessSpec, ProcessState
from schedsim.queues import ReadyQueue


def _proc(pid, burst, remaining=None, priority=0):
    p = Process.admit(ProcessSpec(f"P{pid}", arrival_time=0, burst_time=burst, priority=priority), pid)
    if remaining is not None:
        p.remaining_time = remaining
    return p


def _queue(*procs):
    q = ReadyQueue()
    for p in procs:
        q.enqueue(p)
    return q


def test_enqueue_marks_ready_and_keeps_order():
    a, b = _proc(1, 3), _proc(2, 1)
    q = _queue(a, b)
    assert [p.id for p in q] == [1, 2]
    assert a.state is ProcessState.READY
    assert a in q


def test_remove_at_preserves_relative_order():
    q = _queue(_proc(1, 5), _proc(2, 1), _proc(3, 4), _proc(4, 2))
    removed = q.remove_at(1)
    assert removed.id == 2
    assert [p.id for p in q] == [1, 3, 4]


def test_pop_front_on_empty_queue():
    assert ReadyQueue().pop_front() is None


def test_index_of_min_prefers_earliest_on_ties():
    q = _queue(_proc(1, 4), _proc(2, 2), _proc(3, 2))
    assert q.index_of_min(lambda p: p.original_burst_time) == 1


def test_age_all():
    a, b = _proc(1, 3), _proc(2, 1)
    q = _queue(a, b)
    q.age_all()
    q.age_all(ticks=2)
    assert (a.waiting_time, b.waiting_time) == (3, 3)


def test_fcfs_selects_front():
    q = _queue(_proc(1, 9), _proc(2, 1))
    assert FCFSPolicy().select_next(q) == 0
    assert not FCFSPolicy().should_preempt(_proc(3, 10), q)


def test_sjf_uses_original_burst_not_remaining():
    q = _queue(_proc(1, 9, remaining=1), _proc(2, 3))
    assert SJFPolicy().select_next(q) == 1


def test_srtf_uses_remaining_and_preempts_only_when_strictly_shorter():
    q = _queue(_proc(1, 9, remaining=1), _proc(2, 3))
    policy = SRTFPolicy()
    assert policy.select_next(q) == 0
    assert policy.should_preempt(_proc(3, 5, remaining=2), q)
    assert not policy.should_preempt(_proc(4, 5, remaining=1), q)
    assert not policy.should_preempt(_proc(5, 5), ReadyQueue())


def test_priority_lower_value_is_higher_priority():
    q = _queue(_proc(1, 1, priority=3), _proc(2, 1, priority=1), _proc(3, 1, priority=1))
    assert PriorityPolicy().select_next(q) == 1


def test_round_robin_slice_expiry():
    policy = RoundRobinPolicy(quantum=3)
    assert not policy.slice_expired(2)
    assert policy.slice_expired(3)
    assert policy.describe() == "Round Robin (q=3)"


def test_round_robin_requires_positive_quantum():
    with pytest.raises(ValueError):
        RoundRobinPolicy(quantum=0)


@pytest.mark.parametrize(
    "name,expected",
    [("fcfs", "FCFS"), ("Sjf", "SJF"), (" srtf ", "SRTF"), ("rr", "RR"), ("PRIORITY", "PRIORITY"), ("mlfq", "FCFS"), (None, "FCFS")],
)
def test_normalize_algorithm(name, expected):
    assert normalize_algorithm(name) == expected


def test_get_policy_passes_quantum():
    policy = get_policy("rr", quantum=5)
    assert isinstance(policy, RoundRobinPolicy)
    assert policy.quantum == 5
