"""End-to-end runs of the full simulation loop over a lossy network."""

from __future__ import annotations

import csv
import math

import pytest

from dronenet.config import SimulationSettings
from dronenet.engine.simulation import Simulator
from dronenet.model.agent import AgentParams
from dronenet.model.vector import Vector2
from dronenet.model.world import WorldConfig
from dronenet.network.delivery import DeliveryNetwork

DRONE_COUNT = 4
STEPS = 400
DT = 0.05


@pytest.fixture
def lossy_run(tmp_path):
    """Run a 20s mission with jitter and drops, returning the simulator and log path."""
    log_path = tmp_path / "mission.csv"
    world = WorldConfig(Vector2(0.0, -9.8), width=80.0, height=60.0)
    network = DeliveryNetwork(0.5, 0.2, 0.15, seed=2024, log_path=log_path, echo=False)
    sim = Simulator(world, network, settings=SimulationSettings(comms_log_path=None))

    params = AgentParams(mass=1.5, max_thrust=25.0, max_speed=12.0)
    for i in range(DRONE_COUNT):
        sim.add_agent(params, Vector2(10.0 + 15.0 * i, 30.0))

    for step in range(STEPS):
        angle = step * 0.05
        for drone in range(DRONE_COUNT):
            if (step // 50 + drone) % 3 == 0:
                sim.clear_thrust(drone)
            else:
                sim.set_thrust_direction(drone, Vector2(math.cos(angle + drone), math.sin(angle)))
        sim.step(DT)
        for agent in sim.agents:
            assert 0.0 <= agent.position.x <= world.width
            assert 0.0 <= agent.position.y <= world.height
            assert agent.velocity.length() <= params.max_speed + 1e-9

    yield sim, log_path
    sim.close()


class TestLossyMission:
    """Invariants that hold over a long run with drops and jitter."""

    def test_report_count(self, lossy_run):
        sim, _ = lossy_run
        # One batch per 0.5s across 20s (0.05 steps accumulate slightly below
        # exact boundaries, so allow the final batch to slip past the end).
        batches = sim.network.sent_count // DRONE_COUNT
        assert sim.network.sent_count % DRONE_COUNT == 0
        assert batches in (39, 40)

    def test_every_message_accounted_for_after_drain(self, lossy_run):
        sim, _ = lossy_run
        net = sim.network

        net.advance(sim.current_time + 10.0)

        assert net.in_transit_count == 0
        assert net.failed_count == 0
        assert net.delivered_count + net.dropped_count == net.sent_count
        assert net.dropped_count > 0

    def test_mailbox_only_at_collector(self, lossy_run):
        sim, _ = lossy_run
        summary = sim.comms_summary()

        assert list(summary.mailboxes) == ["HQ", "Drone0", "Drone1", "Drone2", "Drone3"]
        assert len(summary.mailboxes["HQ"]) == summary.delivered_count
        for name in ("Drone0", "Drone1", "Drone2", "Drone3"):
            assert summary.mailboxes[name] == ()

    def test_latencies_within_jitter_window(self, lossy_run):
        sim, _ = lossy_run
        hq = sim.network.get_node("HQ")
        assert all(0.3 - 1e-9 <= r.latency <= 0.7 + 1e-9 for r in hq.mailbox)
        assert sim.network.average_latency == pytest.approx(0.5, abs=0.1)

    def test_message_ids_unique_and_increasing_per_sender(self, lossy_run):
        sim, _ = lossy_run
        hq = sim.network.get_node("HQ")
        for drone in range(DRONE_COUNT):
            ids = [r.message_id for r in hq.mailbox if r.sender == f"Drone{drone}"]
            assert ids == sorted(ids)
            assert len(ids) == len(set(ids))

    def test_payloads_are_telemetry(self, lossy_run):
        sim, _ = lossy_run
        hq = sim.network.get_node("HQ")
        assert all(r.payload.startswith("STATUS pos=(") for r in hq.mailbox)

    def test_log_matches_counters(self, lossy_run):
        sim, log_path = lossy_run
        net = sim.network

        with log_path.open(newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))

        events = [r["event"] for r in rows]
        assert events.count("send") + events.count("drop_scheduled") == net.sent_count
        assert events.count("drop_scheduled") == net.dropped_count
        assert events.count("deliver") == net.delivered_count
        assert all(r["dropped"] == "1" for r in rows if r["event"] == "drop_scheduled")
