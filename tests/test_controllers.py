import math

import pytest

from forcebot.controllers import (
    AdaptiveForceController,
    ContactForceController,
    ExponentialMovingAverage,
    FollowAngleController,
    FollowPositionController,
    ImpedanceParams,
    PositionController,
    UndampedPositionController,
    UndampedVelocityController,
    VelocityController,
    desired_force,
)

PARAMS = ImpedanceParams(mass=35.0, damping=550.0, stiffness=1000.0, stiffness_0=0.0)
FORCES = [1.5, -2.0, 4.0, 0.3, -0.7, 2.2]


def test_ema_alpha_one_tracks_measurement():
    ema = ExponentialMovingAverage(0.0, 1.0)
    assert ema.update(7.25) == 7.25
    assert ema.value == 7.25


def test_ema_alpha_zero_keeps_initial():
    ema = ExponentialMovingAverage(2.5, 0.0)
    for value in FORCES:
        assert ema.update(value) == 2.5


def test_ema_converges_to_constant():
    ema = ExponentialMovingAverage(0.0, 0.1)
    previous = ema.value
    for _ in range(300):
        current = ema.update(10.0)
        assert previous <= current <= 10.0
        previous = current
    assert ema.value == pytest.approx(10.0, abs=1e-6)


def test_ema_stays_between_initial_and_measurement():
    ema = ExponentialMovingAverage(1.0, 0.3)
    result = ema.update(5.0)
    assert 1.0 < result < 5.0


def test_desired_force_base_and_period():
    assert desired_force(0) == pytest.approx(3.0)
    assert desired_force(30) == pytest.approx(desired_force(0))
    assert desired_force(15) == pytest.approx(3.0)


def test_desired_force_bounds():
    values = [desired_force(i) for i in range(60)]
    assert max(values) <= 4.0 + 1e-12
    assert min(values) >= 2.0 - 1e-12
    assert desired_force(5) > desired_force(0) > desired_force(20)


@pytest.mark.parametrize(
    "factory",
    [
        lambda: FollowPositionController(PARAMS, 0.4),
        lambda: ContactForceController(PARAMS, 0.4),
        lambda: UndampedPositionController(PARAMS, 0.4),
    ],
)
def test_balanced_force_keeps_position(factory):
    controller = factory()
    for _ in range(10):
        assert controller.step(3.0, 3.0) == 0.4


def test_position_controller_at_target_without_error_stays():
    controller = PositionController(PARAMS, 0.25)
    for _ in range(5):
        assert controller.step(2.0, 2.0, 0.25) == 0.25


def test_position_controller_spring_pulls_towards_target():
    controller = PositionController(PARAMS, 0.0)
    first = controller.step(0.0, 0.0, 1.0)
    assert 0.0 < first < 1.0
    assert controller.velocity > 0


def test_follow_controller_moves_with_force_sign():
    up = FollowPositionController(PARAMS, 0.0)
    down = FollowPositionController(PARAMS, 0.0)
    for _ in range(5):
        up_pos = up.step(0.0, 2.0)
        down_pos = down.step(0.0, -2.0)
    assert up_pos > 0
    assert down_pos == pytest.approx(-up_pos)


def test_contact_matches_follow_controller():
    contact = ContactForceController(PARAMS, 0.1)
    follow = FollowPositionController(PARAMS, 0.1)
    for force in FORCES:
        assert contact.step(3.0, force) == pytest.approx(follow.step(3.0, force))


def test_undamped_position_matches_follow_controller():
    undamped = UndampedPositionController(PARAMS, -0.2)
    follow = FollowPositionController(PARAMS, -0.2)
    for force in FORCES:
        assert undamped.step(1.0, force) == pytest.approx(follow.step(1.0, force))


def test_velocity_controller_matches_position_controller_velocity():
    velocity = VelocityController(PARAMS, 0.3)
    contact = ContactForceController(PARAMS, 0.3)
    for force in FORCES:
        speed = velocity.step(2.0, force)
        contact.step(2.0, force)
        assert speed == pytest.approx(contact.velocity)
    assert velocity.position == 0.3


def test_undamped_velocity_matches_velocity_controller():
    undamped = UndampedVelocityController(PARAMS)
    velocity = VelocityController(PARAMS, 0.0)
    for force in FORCES:
        assert undamped.step(0.5, force) == pytest.approx(velocity.step(0.5, force))


def test_velocity_settles_under_constant_force():
    controller = UndampedVelocityController(PARAMS)
    speeds = [controller.step(0.0, 5.5) for _ in range(400)]
    assert speeds[-1] == pytest.approx(5.5 / PARAMS.damping, rel=1e-6)


def test_follow_angle_increments_are_constant():
    controller = FollowAngleController(PARAMS, 1.0)
    first = controller.step(0.0, 7.0)
    second = controller.step(0.0, 7.0)
    assert second - first == pytest.approx(first - 1.0)
    assert first > 1.0


def test_follow_angle_zero_error_keeps_angle():
    controller = FollowAngleController(PARAMS, -0.5)
    assert controller.step(4.0, 4.0) == -0.5


def test_adaptive_without_integral_matches_position_controller():
    adaptive = AdaptiveForceController(PARAMS, 0.2)
    plain = PositionController(PARAMS, 0.2)
    for force in FORCES:
        assert adaptive.step(1.0, force, 0.3, 9.0, 0.0) == pytest.approx(
            plain.step(1.0, force, 0.3)
        )


def test_adaptive_integral_term_pushes_position():
    params = ImpedanceParams(mass=20.0, damping=550.0)
    adaptive = AdaptiveForceController(params, 0.0)
    result = adaptive.step(0.0, 0.0, 0.0, 2.0, 0.5)
    assert result > 0
    assert adaptive.integral == pytest.approx(2.0 * (1 + adaptive.dt))


def test_impedance_params_defaults():
    params = ImpedanceParams(mass=20.0, damping=550.0)
    assert params.stiffness == 0.0
    assert params.stiffness_0 == 0.0
    assert math.isclose(params.mass, 20.0)