"""Force-controlled contact loop for a robot arm with a force/torque sensor."""

from __future__ import annotations

import time
from typing import Optional, Protocol, Sequence, TextIO

from forcebot.controllers import (
    DEFAULT_DT,
    ContactForceController,
    ExponentialMovingAverage,
    ImpedanceParams,
    desired_force,
)
from forcebot.netft import ForceRecorder, Response, forward_to_serial

POSE_HEADER = ("X", "Y", "Z", "Rx", "Ry", "Rz")
SERVO_LOOKAHEAD = 0.09
SERVO_GAIN = 1000


class _Robot(Protocol):
    def get_actual_tcp_pose(self) -> Sequence[float]: ...

    def move_l(self, pose: Sequence[float]) -> object: ...

    def servo_l(
        self,
        pose: Sequence[float],
        speed: float,
        acceleration: float,
        time: float,
        lookahead_time: float,
        gain: float,
    ) -> object: ...


class _Sensor(Protocol):
    def read(self) -> Response: ...

    def set_bias(self) -> None: ...


def _fmt(value: float) -> str:
    return f"{value:g}"


class _HeaderFirstRecorder:
    def __init__(self, stream: TextIO) -> None:
        self.stream = stream
        self._header_written = False

    def _write(self, values: Sequence[float]) -> None:
        if not self._header_written:
            self._header_written = True
            self.stream.write(",".join(POSE_HEADER) + "\n")
            return
        self.stream.write(",".join(_fmt(v) for v in values) + "\n")


class PoseRecorder(_HeaderFirstRecorder):
    """CSV log of TCP poses; the first call writes the header row only."""

    def __init__(self, stream: TextIO) -> None:
        super().__init__(stream)

    def record(self, pose: Sequence[float]) -> None:
        self._write(list(pose)[:6])


class FilterRecorder(_HeaderFirstRecorder):
    """CSV log of forces with Fz replaced by its smoothed value."""

    def __init__(self, stream: TextIO) -> None:
        super().__init__(stream)

    def record(self, forces: Sequence[float], smoothed: float) -> None:
        values = list(forces)[:6]
        values[2] = smoothed
        self._write(values)


class ForceControlLoop:
    """Presses the tool along Y so that the measured Fz follows a sinusoidal set-point.

    Construction reads the start pose, moves the robot there and zeroes the sensor.
    Optional recorders and a serial port may be assigned before running.
    """

    def __init__(
        self,
        robot: _Robot,
        sensor: _Sensor,
        params: ImpedanceParams,
        alpha: float = 0.1,
        period: float = DEFAULT_DT,
    ) -> None:
        self.robot = robot
        self.sensor = sensor
        self.period = period
        self.pose_recorder: Optional[PoseRecorder] = None
        self.force_recorder: Optional[ForceRecorder] = None
        self.filter_recorder: Optional[FilterRecorder] = None
        self.serial_port: Optional[str] = None

        self.start_pose = [float(v) for v in robot.get_actual_tcp_pose()]
        if len(self.start_pose) != 6:
            raise ValueError(f"expected a 6-element pose, got {len(self.start_pose)}")
        robot.move_l(list(self.start_pose))
        sensor.set_bias()

        self.filter = ExponentialMovingAverage(0.0, alpha)
        self.controller = ContactForceController(
            ImpedanceParams(params.mass, params.damping, params.stiffness_0, params.stiffness_0),
            self.start_pose[1],
            period,
        )
        self.index = 0
        self.smoothed = 0.0
        self.current_pose = list(self.start_pose)
        self.forces: tuple[float, ...] = (0.0,) * 6

    def step(self) -> list[float]:
        """Run one control period and return the pose commanded to the robot."""
        target_force = desired_force(self.index)

        self.current_pose = [float(v) for v in self.robot.get_actual_tcp_pose()]
        if self.pose_recorder is not None:
            self.pose_recorder.record(self.current_pose)

        response = self.sensor.read()
        self.forces = response.forces
        if self.force_recorder is not None:
            self.force_recorder.record(response)
        if self.serial_port is not None:
            forward_to_serial(self.serial_port, self.forces)

        self.smoothed = self.filter.update(self.forces[2])
        self.index += 1
        if self.filter_recorder is not None:
            self.filter_recorder.record(self.forces, self.smoothed)

        target_y = self.controller.step(target_force, -self.forces[2])
        target = list(self.start_pose)
        target[1] = target_y
        self.robot.servo_l(target, 0, 0, self.period, SERVO_LOOKAHEAD, SERVO_GAIN)
        return target

    def run(self, iterations: Optional[int] = None) -> int:
        """Step repeatedly, sleeping one period between steps; forever when iterations is None."""
        done = 0
        while iterations is None or done < iterations:
            self.step()
            done += 1
            time.sleep(self.period)
        return done