import unittest

from gridtraffic.domain.models import Phase, Vehicle
from gridtraffic.systems.vehicle_system import Decision, snap_heading
from helpers import quiet_kernel, relocate

class TestVehicleDecisions(unittest.TestCase):
    def test_arrival_removes_vehicle(self):
        kernel = quiet_kernel()
        v = kernel.place_vehicle(6, 14)
        self.assertEqual(v.destination, (6, 16))
        kernel.run_tick()  # 14 -> 15
        self.assertEqual(len(kernel.state.vehicles), 1)
        kernel.run_tick()  # within one cell of the destination
        self.assertEqual(kernel.state.vehicles, [])
        self.assertEqual(kernel.metrics.completed_trips, 1)
        self.assertEqual(kernel.metrics.travel_time_sum, 1)
        self.assertFalse(kernel.state.grid.is_occupied(6, 15))

    def test_boundary_u_turn(self):
        kernel = quiet_kernel()
        v = kernel.place_vehicle(6, 14)
        relocate(kernel, v, 6, 16)
        v.destination = (6, -16)

        kernel.run_tick()

        self.assertEqual(v.heading, 180)
        self.assertEqual(v.destination, (5, -16))
        # Realigned onto the south-bound lane while moving
        self.assertEqual((v.x, v.y), (5.0, 15.0))
        self.assertTrue(kernel.state.grid.is_occupied(5, 15))
        self.assertFalse(kernel.state.grid.is_occupied(6, 16))

    def test_trip_to_rear_edge_turns_around(self):
        kernel = quiet_kernel()
        v = kernel.place_vehicle(6, 12, destination_ahead=False)
        self.assertEqual(v.heading, 0)
        self.assertEqual(v.destination, (5, -16))

        kernel.run(5)  # drives north to the edge, then turns onto the south-bound lane
        self.assertEqual(v.heading, 180)
        self.assertEqual(v.cell, (5, 15))

        kernel.run(100)
        self.assertEqual(kernel.metrics.completed_trips, 1)
        self.assertEqual(kernel.metrics.travel_time_sum, 35)
        self.assertTrue(kernel.idle)

    def test_stops_at_red_light(self):
        kernel = quiet_kernel()
        v = kernel.place_vehicle(6, -11)
        kernel.signal_system.controllers["I-5_-10"].state.phase = Phase.HORIZONTAL

        kernel.run_tick()
        self.assertTrue(v.isWaiting)
        self.assertEqual(v.waitingTime, 1)
        self.assertEqual(v.travelTime, 0)
        self.assertEqual(v.y, -11.0)
        self.assertEqual(kernel.metrics.latest().congestionLevel, 1)

        kernel.run_tick()
        self.assertEqual(v.waitingTime, 2)

        kernel.signal_system.controllers["I-5_-10"].state.phase = Phase.VERTICAL
        kernel.run_tick()
        self.assertFalse(v.isWaiting)
        self.assertEqual(v.waitingTime, 0)
        self.assertEqual(v.y, -10.0)

    def test_red_light_for_cross_traffic_only(self):
        kernel = quiet_kernel()
        # East-bound car approaching the same intersection from the west
        v = kernel.place_vehicle(4, -10)
        self.assertEqual(v.heading, 90)
        kernel.run_tick()
        self.assertTrue(v.isWaiting)
        self.assertEqual(v.x, 4.0)

    def test_car_following(self):
        kernel = quiet_kernel()
        rear = kernel.place_vehicle(6, -13)
        front = kernel.place_vehicle(6, -12)

        kernel.run_tick()
        self.assertTrue(rear.isWaiting)
        self.assertEqual(rear.waitingTime, 1)
        self.assertEqual(rear.y, -13.0)
        self.assertFalse(front.isWaiting)
        self.assertEqual(front.y, -11.0)

        kernel.run_tick()
        self.assertFalse(rear.isWaiting)
        self.assertEqual(rear.waitingTime, 0)

    def test_gridlock_escape(self):
        kernel = quiet_kernel()
        v = kernel.place_vehicle(6, -11)
        blocker = kernel.place_vehicle(6, -7)
        relocate(kernel, v, 6, -10)
        relocate(kernel, blocker, 6, -9)

        v.waitingTime = 10
        decisions = kernel.vehicle_system.decide_all(kernel.state.vehicles)
        self.assertEqual(decisions[v.id], Decision.WAIT_FOLLOW)
        self.assertEqual(v.waitingTime, 11)

        decisions = kernel.vehicle_system.decide_all(kernel.state.vehicles)
        self.assertEqual(decisions[v.id], Decision.ESCAPE)
        self.assertFalse(v.isWaiting)
        self.assertEqual(v.waitingTime, 0)

    def test_gridlock_escape_attempts_to_move(self):
        kernel = quiet_kernel()
        v = kernel.place_vehicle(6, -11)
        blocker = kernel.place_vehicle(6, -7)
        relocate(kernel, v, 6, -10)
        relocate(kernel, blocker, 6, -9)
        v.waitingTime = 11

        kernel.run_tick()
        # Blocked at tick start, so it stays put, but it did try
        self.assertFalse(v.isWaiting)
        self.assertEqual(v.travelTime, 1)
        self.assertEqual(v.y, -10.0)
        self.assertEqual(blocker.y, -8.0)

        kernel.run_tick()
        self.assertGreater(v.y, -10.0)

class TestSpeedAdaptation(unittest.TestCase):
    def setUp(self):
        self.kernel = quiet_kernel(**{"max-car-speed": 5})
        self.system = self.kernel.vehicle_system

    def make(self, vid, x, y, heading=0, speed=1.0, max_speed=5.0):
        return Vehicle(id=vid, x=x, y=y, heading=heading, destination=(6, 16), speed=speed, maxSpeed=max_speed)

    def test_accelerates_on_open_road(self):
        v = self.make("a", 6, 0)
        self.system.adapt_speed(v, [v])
        self.assertAlmostEqual(v.speed, 1.3)

    def test_accelerates_up_to_max(self):
        v = self.make("a", 6, 0, speed=4.9)
        self.system.adapt_speed(v, [v])
        self.assertEqual(v.speed, 5.0)

    def test_close_leader(self):
        v = self.make("a", 6, 0)
        leader = self.make("b", 6, 1)
        self.system.adapt_speed(v, [v, leader])
        self.assertAlmostEqual(v.speed, 0.7)

    def test_close_leader_floor(self):
        v = self.make("a", 6, 0, speed=0.3)
        leader = self.make("b", 6, 1.5)
        self.system.adapt_speed(v, [v, leader])
        self.assertAlmostEqual(v.speed, 0.2)

    def test_far_leader(self):
        v = self.make("a", 6, 0)
        leader = self.make("b", 6, 2)
        self.system.adapt_speed(v, [v, leader])
        self.assertAlmostEqual(v.speed, 0.8)

    def test_far_leader_floor(self):
        v = self.make("a", 6, 0, speed=0.6)
        leader = self.make("b", 6, 2)
        self.system.adapt_speed(v, [v, leader])
        self.assertAlmostEqual(v.speed, 0.5)

    def test_ignores_vehicles_outside_cone(self):
        v = self.make("a", 6, 0)
        others = [
            self.make("behind", 6, -1),
            self.make("diagonal", 7, 1),
            self.make("too_far", 6, 2.5),
            self.make("opposite", 6, 1, heading=180),
        ]
        self.system.adapt_speed(v, [v] + others)
        self.assertAlmostEqual(v.speed, 1.3)

    def test_cone_uses_headings_from_tick_start(self):
        kernel = self.kernel
        leader = kernel.place_vehicle(6, 12, destination_ahead=False)
        relocate(kernel, leader, 6, 16)
        follower = kernel.place_vehicle(6, 14, speed=1)

        kernel.run_tick()

        # The leader turned around this tick but still counts as same-heading traffic
        self.assertEqual(leader.heading, 180)
        self.assertAlmostEqual(follower.speed, 0.8)

    def test_speed_never_leaves_bounds(self):
        v = self.make("a", 6, 0, speed=0.15, max_speed=0.15)
        leader = self.make("b", 6, 1)
        self.system.adapt_speed(v, [v, leader])
        self.assertEqual(v.speed, 0.15)
        self.system.adapt_speed(v, [v])
        self.assertEqual(v.speed, 0.15)

    def test_snap_heading(self):
        self.assertEqual(snap_heading(89.6), 90)
        self.assertEqual(snap_heading(359.7), 0)
        self.assertEqual(snap_heading(180), 180)

class TestMovement(unittest.TestCase):
    def test_fast_vehicle_stops_before_occupied_cell(self):
        kernel = quiet_kernel(**{"max-car-speed": 5})
        v = kernel.place_vehicle(6, -8, speed=5)
        kernel.place_vehicle(6, -3, speed=0.1)
        kernel.run_tick()
        self.assertLess(v.y, -3.5)
        self.assertEqual(len(set(c.cell for c in kernel.state.vehicles)), 2)

    def test_fast_vehicle_stops_at_red_intersection(self):
        kernel = quiet_kernel(**{"max-car-speed": 5})
        v = kernel.place_vehicle(6, -8, speed=5)
        kernel.signal_system.controllers["I-5_-5"].state.phase = Phase.HORIZONTAL
        kernel.run_tick()
        self.assertEqual(v.cell, (6, -6))

    def test_contested_cell_is_left_empty(self):
        kernel = quiet_kernel()
        north = kernel.place_vehicle(6, -12)
        east = kernel.place_vehicle(4, -10)
        relocate(kernel, north, 6, -11)
        relocate(kernel, east, 5, -10)
        # Both now want (6, -10): north-bound enters on green, east-bound is already inside
        kernel.run_tick()
        self.assertEqual(north.cell, (6, -11))
        self.assertEqual(east.cell, (5, -10))
        self.assertEqual(max(kernel.state.grid.occupancy_writes.values(), default=0), 0)

if __name__ == '__main__':
    unittest.main()
