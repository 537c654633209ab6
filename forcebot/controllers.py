"""Admittance-style force controllers and a smoothing filter."""

from __future__ import annotations

import math
from dataclasses import dataclass

DEFAULT_DT = 0.09


@dataclass(frozen=True)
class ImpedanceParams:
    """Virtual mass, damping and stiffness of an admittance controller."""

    mass: float
    damping: float
    stiffness: float = 0.0
    stiffness_0: float = 0.0


class ExponentialMovingAverage:
    """Exponentially weighted moving average: s = a * x + (1 - a) * s."""

    def __init__(self, initial: float = 0.0, alpha: float = 0.1) -> None:
        self.alpha = alpha
        self.value = initial

    def update(self, measurement: float) -> float:
        """Fold a measurement into the average and return the new value."""
        self.value = self.alpha * measurement + (1 - self.alpha) * self.value
        return self.value


def desired_force(index: int) -> float:
    """Sinusoidal force set-point used by the control loop."""
    return 3 + math.sin(math.pi * index / 15)


class _Integrator:
    """Shared state of the controllers: position and velocity integrated over dt."""

    def __init__(self, params: ImpedanceParams, start_position: float, dt: float) -> None:
        self.params = params
        self.dt = dt
        self.position = start_position
        self.velocity = 0.0

    def _accelerate(self, force_term: float) -> float:
        acceleration = (force_term - self.params.damping * self.velocity) / self.params.mass
        self.velocity += acceleration * self.dt
        return self.velocity

    def _advance(self) -> float:
        self.position += self.velocity * self.dt
        return self.position


class PositionController(_Integrator):
    """Mass-damper-spring admittance pulling towards a target position."""

    def __init__(self, params: ImpedanceParams, start_position: float, dt: float = DEFAULT_DT) -> None:
        super().__init__(params, start_position, dt)

    def step(self, target_force: float, current_force: float, target_position: float) -> float:
        """Advance one period; return the new absolute position."""
        spring = self.params.stiffness * (self.position - target_position)
        self._accelerate((current_force - target_force) - spring)
        return self._advance()


class FollowPositionController(_Integrator):
    """Mass-damper admittance that follows the applied force."""

    def __init__(self, params: ImpedanceParams, start_position: float, dt: float = DEFAULT_DT) -> None:
        super().__init__(params, start_position, dt)

    def step(self, target_force: float, current_force: float) -> float:
        """Advance one period; return the new absolute position."""
        self._accelerate(current_force - target_force)
        return self._advance()


class FollowAngleController:
    """Rotates by the force error divided by the virtual mass each step."""

    def __init__(self, params: ImpedanceParams, start_angle: float) -> None:
        self.params = params
        self.angle = start_angle
        # The angular speed is never integrated, so the damping term stays zero.
        self.speed = 0.0

    def step(self, target_force: float, current_force: float) -> float:
        """Advance one step; return the new absolute angle."""
        change = ((current_force - target_force) - self.params.damping * self.speed) / self.params.mass
        self.angle += change
        return self.angle


class ContactForceController(_Integrator):
    """Constant-contact-force controller; the spring always targets the current position."""

    def __init__(self, params: ImpedanceParams, start_position: float, dt: float = DEFAULT_DT) -> None:
        super().__init__(params, start_position, dt)

    def step(self, target_force: float, current_force: float) -> float:
        """Advance one period; return the new absolute position."""
        spring = self.params.stiffness * (self.position - self.position)
        self._accelerate((current_force - target_force) - spring)
        return self._advance()


class VelocityController(_Integrator):
    """Constant-contact-force controller that outputs a velocity command."""

    def __init__(self, params: ImpedanceParams, start_position: float, dt: float = DEFAULT_DT) -> None:
        super().__init__(params, start_position, dt)

    def step(self, target_force: float, current_force: float) -> float:
        """Advance one period; return the new absolute velocity."""
        spring = self.params.stiffness * (self.position - self.position)
        return self._accelerate((current_force - target_force) - spring)


class UndampedPositionController(_Integrator):
    """Stiffness-free admittance that outputs an absolute position."""

    def __init__(self, params: ImpedanceParams, start_position: float, dt: float = DEFAULT_DT) -> None:
        super().__init__(params, start_position, dt)

    def step(self, target_force: float, current_force: float) -> float:
        """Advance one period; return the new absolute position."""
        self._accelerate(current_force - target_force)
        return self._advance()


class UndampedVelocityController(_Integrator):
    """Stiffness-free admittance that outputs a velocity command."""

    def __init__(self, params: ImpedanceParams, dt: float = DEFAULT_DT) -> None:
        super().__init__(params, 0.0, dt)

    def step(self, target_force: float, current_force: float) -> float:
        """Advance one period; return the new absolute velocity."""
        return self._accelerate(current_force - target_force)


class AdaptiveForceController(_Integrator):
    """Admittance with an additional integral-style force-error term."""

    def __init__(self, params: ImpedanceParams, start_position: float, dt: float = DEFAULT_DT) -> None:
        super().__init__(params, start_position, dt)
        self.integral = 0.0

    def step(
        self,
        target_force: float,
        current_force: float,
        target_position: float,
        error_force: float,
        ki: float,
    ) -> float:
        """Advance one period; return the new absolute position."""
        self.integral = error_force + self.dt * error_force
        spring = self.params.stiffness * (self.position - target_position)
        self._accelerate((current_force - target_force) + ki * self.integral - spring)
        return self._advance()