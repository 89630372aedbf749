"""Selection and assignment policies, including tie-breaks and collisions."""

import random

import pytest

from sim.errors import ConfigurationError
from sim.policies import (
    ASLCQPolicy, LCSFLCQPolicy, LongestConnectedQueuePolicy, RandomAssignmentPolicy,
    RandomQueuePolicy, RoundRobinPolicy, make_policy,
)
from sim.queues import SimQueue, Server


def make_queues(probs, sizes, seed=0):
    rng = random.Random(seed)
    queues = []
    for i, (p, n) in enumerate(zip(probs, sizes)):
        q = SimQueue(p, 0.0, rng=rng, index=i)
        for t in range(n):
            q.enqueue(t)
        queues.append(q)
    return queues


@pytest.mark.parametrize("name,servers,cls", [
    ("random", 1, RandomQueuePolicy),
    ("roundrobin", 1, RoundRobinPolicy),
    ("LCQ", 1, LongestConnectedQueuePolicy),
    ("random", 3, RandomAssignmentPolicy),
    ("aslcq", 2, ASLCQPolicy),
    ("lcsflcq", 3, LCSFLCQPolicy),
])
def test_make_policy_resolves_by_topology(name, servers, cls):
    assert isinstance(make_policy(name, servers), cls)


@pytest.mark.parametrize("name,servers", [
    ("fifo", 1), ("lcq", 3), ("aslcq", 1), ("roundrobin", 2), ("", 1),
])
def test_make_policy_fails_fast(name, servers):
    with pytest.raises(ConfigurationError):
        make_policy(name, servers)


def test_random_nothing_connected():
    queues = make_queues([0.0] * 3, [4, 4, 4])
    assert RandomQueuePolicy().select(queues, random.Random(1)) is None


def test_random_empty_pick_is_a_wasted_slot():
    queues = make_queues([1.0], [0])
    assert RandomQueuePolicy().select(queues, random.Random(1)) is None


def test_random_only_picks_connected_queues():
    queues = make_queues([0.0, 1.0, 0.0], [5, 2, 5])
    rng = random.Random(4)
    policy = RandomQueuePolicy()
    assert all(policy.select(queues, rng) is queues[1] for _ in range(50))


def test_round_robin_advances_on_hit_and_miss():
    queues = make_queues([1.0, 0.0, 1.0], [1, 1, 0])
    policy = RoundRobinPolicy()
    rng = random.Random(0)
    picks = [policy.select(queues, rng) for _ in range(3)]
    # index 0 hit, index 1 disconnected, index 2 empty
    assert picks == [queues[0], None, None]
    assert policy.cursor == 0


def test_round_robin_cursor_counts_slots():
    queues = make_queues([0.5] * 4, [0, 1, 2, 3])
    policy = RoundRobinPolicy()
    rng = random.Random(9)
    for n in range(1, 23):
        policy.select(queues, rng)
        assert policy.cursor == n % 4


def test_round_robin_skips_connectivity_draw_for_empty_queue(fake_queue):
    # An empty queue is rejected before its connectivity is queried
    queue = fake_queue(0, [])
    assert RoundRobinPolicy().select([queue], random.Random(0)) is None


def test_lcq_ties_go_to_lowest_index():
    queues = make_queues([1.0] * 3, [2, 5, 5])
    assert LongestConnectedQueuePolicy().select(queues, random.Random(0)) is queues[1]


def test_lcq_ignores_disconnected_queues():
    queues = make_queues([1.0, 0.0, 1.0], [1, 9, 3])
    assert LongestConnectedQueuePolicy().select(queues, random.Random(0)) is queues[2]


def test_lcq_draws_connectivity_once_per_queue(fake_queue):
    # One answer each: a second query would pop from an empty list
    queues = [fake_queue(1, [True], 0), fake_queue(4, [False], 1), fake_queue(2, [True], 2)]
    assert LongestConnectedQueuePolicy().select(queues, random.Random(0)) is queues[2]


def test_aslcq_servers_collide_on_longest_queue():
    queues = make_queues([1.0] * 3, [1, 6, 6])
    servers = [Server("a"), Server("b")]
    assignments = ASLCQPolicy().assign(queues, servers, random.Random(2))
    assert sorted(s.name for s, _ in assignments) == ["a", "b"]
    assert all(q is queues[1] for _, q in assignments)


def test_multi_server_random_with_nothing_connected():
    queues = make_queues([0.0] * 4, [3] * 4)
    servers = [Server(str(i)) for i in range(3)]
    assignments = RandomAssignmentPolicy().assign(queues, servers, random.Random(6))
    assert len(assignments) == 3
    assert all(q is None for _, q in assignments)


def test_multi_server_order_is_shuffled():
    queues = make_queues([1.0], [0])
    servers = [Server(str(i)) for i in range(6)]
    policy = ASLCQPolicy()
    rng = random.Random(12)
    orders = {tuple(s.name for s, _ in policy.assign(queues, servers, rng)) for _ in range(30)}
    assert len(orders) > 1


def test_lcsf_least_connected_server_goes_first(fake_queue):
    # First server in shuffled order reaches {A, B}; the second only {A}.
    a = fake_queue(1, [True, True], 0)
    b = fake_queue(5, [True, False], 1)
    servers = [Server("x"), Server("y")]
    assignments = LCSFLCQPolicy().assign([a, b], servers, random.Random(3))
    assert [q for _, q in assignments] == [a, b]
    assert {s.name for s, _ in assignments} == {"x", "y"}


def test_lcsf_remaining_servers_may_collide():
    queues = make_queues([1.0, 1.0], [2, 7])
    servers = [Server(str(i)) for i in range(3)]
    assignments = LCSFLCQPolicy().assign(queues, servers, random.Random(8))
    assert len(assignments) == 3
    assert all(q is queues[1] for _, q in assignments)


def test_lcsf_unreachable_server_gets_nothing():
    queues = make_queues([0.0, 0.0], [2, 2])
    servers = [Server("a"), Server("b")]
    assignments = LCSFLCQPolicy().assign(queues, servers, random.Random(8))
    assert [q for _, q in assignments] == [None, None]


def test_multi_server_random_samples_with_replacement():
    # Three servers and two reachable queues: some queue is always shared
    queues = make_queues([1.0, 1.0], [4, 4])
    servers = [Server(str(i)) for i in range(3)]
    policy = RandomAssignmentPolicy()
    rng = random.Random(21)
    seen = set()
    for _ in range(40):
        picked = [q.index for _, q in policy.assign(queues, servers, rng)]
        assert len(picked) == 3
        assert len(set(picked)) < len(picked)
        seen.update(picked)
    assert seen == {0, 1}
