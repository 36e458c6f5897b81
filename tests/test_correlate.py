import pytest

from fakes import IDLE, PROXY, STRATUM, FakeInventory, FakeRegistry, FakeSockets, conn
from stratum_counter.errors import ContainerMembershipAmbiguous, RegistryUnavailableError
from stratum_counter.models import AddressSide, TcpState
from stratum_counter.topology import correlate, filter_connections, take_snapshot

def _run(conns, pids, containers, members, **kw):
    registry = FakeRegistry(containers, members)
    snap = take_snapshot(FakeSockets(conns), registry)
    return correlate(snap, FakeInventory(pids), registry, **kw)

def test_single_connection_reported():
    c = conn(pid=100)
    out = _run([c], [100], [STRATUM], {"abc123": {100}})
    assert len(out) == 1
    assert out[0].container == STRATUM
    assert out[0].connections == [c]

def test_other_port_gives_empty_report():
    out = _run([conn(pid=100)], [100], [STRATUM], {"abc123": {100}}, port=4444)
    assert out == []

def test_vanished_process_is_dropped():
    out = _run([conn(pid=100)], [], [STRATUM], {"abc123": {100}})
    assert out == []

def test_registry_unreachable_is_fatal():
    registry = FakeRegistry(exc=RegistryUnavailableError("daemon down"))
    with pytest.raises(RegistryUnavailableError):
        take_snapshot(FakeSockets([conn()]), registry)

def test_two_connections_same_container_keep_order():
    a = conn(pid=100, remote_port=1)
    b = conn(pid=101, remote_port=2)
    out = _run([a, b], [100, 101], [STRATUM], {"abc123": {100, 101}})
    assert len(out) == 1
    assert out[0].connections == [a, b]

def test_filter_keeps_only_port_and_state():
    conns = [
        conn(local_port=3333),
        conn(local_port=3334),
        conn(local_port=3333, state=TcpState.TIME_WAIT),
        conn(local_port=3333, state=TcpState.LISTEN, remote_addr="0.0.0.0", remote_port=0),
    ]
    out = _run(conns, [100], [STRATUM], {"abc123": {100}})
    for report in out:
        for c in report.connections:
            assert c.local_port == 3333
            assert c.state is TcpState.ESTABLISHED
    assert sum(len(r.connections) for r in out) == 1

def test_state_filter_selects_listen():
    listener = conn(state=TcpState.LISTEN, remote_addr="0.0.0.0", remote_port=0)
    out = _run([conn(), listener], [100], [STRATUM], {"abc123": {100}}, state=TcpState.LISTEN)
    assert out[0].connections == [listener]

def test_remote_side_matches_peer_port():
    outbound = conn(local_port=41000, remote_port=3333)
    inbound = conn(local_port=3333, remote_port=41001)
    out = _run([outbound, inbound], [100], [STRATUM], {"abc123": {100}}, side=AddressSide.REMOTE)
    assert out[0].connections == [outbound]

def test_idempotent_on_frozen_snapshot():
    registry = FakeRegistry([STRATUM, PROXY], {"abc123": {100}, "def456": {200}})
    snap = take_snapshot(FakeSockets([conn(pid=200), conn(pid=100), conn(pid=200)]), registry)
    first = correlate(snap, FakeInventory([100, 200]), registry)
    second = correlate(snap, FakeInventory([100, 200]), registry)
    assert first == second

def test_containers_in_first_seen_order():
    conns = [conn(pid=200), conn(pid=100), conn(pid=200, remote_port=2)]
    out = _run(conns, [100, 200], [STRATUM, PROXY], {"abc123": {100}, "def456": {200}})
    assert [r.container.name for r in out] == ["proxy", "stratum-server"]
    assert len(out[0].connections) == 2

def test_empty_containers_omitted():
    out = _run([conn(pid=100)], [100], [IDLE, STRATUM], {"abc123": {100}})
    assert [r.container for r in out] == [STRATUM]

def test_host_process_dropped():
    out = _run([conn(pid=1)], [1], [STRATUM], {"abc123": {100}})
    assert out == []

def test_unowned_socket_dropped():
    out = _run([conn(pid=None)], [100], [STRATUM], {"abc123": {100}})
    assert out == []

def test_ambiguous_membership_first_match_wins():
    with pytest.warns(ContainerMembershipAmbiguous):
        out = _run([conn(pid=100), conn(pid=100, remote_port=2)], [100], [PROXY, STRATUM],
                   {"abc123": {100}, "def456": {100}})
    assert [r.container for r in out] == [PROXY]
    assert len(out[0].connections) == 2

def test_process_resolved_once_per_pass():
    registry = FakeRegistry([STRATUM], {"abc123": {100}})
    inventory = FakeInventory([100])
    snap = take_snapshot(FakeSockets([conn(remote_port=p) for p in range(5)]), registry)
    correlate(snap, inventory, registry)
    assert inventory.calls == [100]

def test_filter_connections_is_pure():
    conns = [conn(local_port=1), conn(local_port=3333)]
    assert filter_connections(conns, 3333) == [conns[1]]
    assert len(conns) == 2
