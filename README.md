# forcebot

Tools for force-guided robot motion:

- reading a six-axis Net F/T force/torque sensor over its UDP real-time protocol,
- admittance controllers that turn measured contact forces into new tool positions or velocities,
- a control loop that ties a sensor, a robot and a controller together, with optional CSV logs.

## Modules

- `forcebot.netft` – the sensor side.
  - `Command` holds the RDT command codes. `build_request(command, sample_count)` encodes an
    8-byte request. `parse_response(data)` decodes a 36-byte record into a `Response`, and
    raises `ValueError` when the data is too short.
  - `Response` has `rdt_sequence`, `ft_sequence`, `status` and the six raw `counts`. Its
    `forces` property gives the counts divided by 1,000,000.
  - `NetFTClient(host, port, timeout)` is a UDP client that also works as a context
    manager. `read()` requests one real-time sample and `set_bias()` sends the software-bias
    command.
  - `ForceRecorder(stream)` writes records as CSV. The first call to `record()` writes only
    the header row. Each later call writes one data row.
  - `encode_serial_frame(forces)` packs six values as little-endian float32 between the
    markers `03 FC` and `FC 03`. `forward_to_serial(port, forces)` opens the port at
    460800 baud and writes the first 16 bytes of that frame. It returns the number of bytes
    written, or 0 when the port cannot be opened.
  - `str_search(haystack, needle)` returns a 1-based position, or 0.
    `leading_int(text)` parses the leading decimal digits of a string.
- `forcebot.tcpsocket` – `create_server_socket(port, backlog)` and
  `create_client_socket(ip, port)` for plain TCP endpoints. The default port is 30003.
- `forcebot.controllers` – the filter, the controllers and the setpoint.
  - `ImpedanceParams(mass, damping, stiffness, stiffness_0)` holds the controller
    parameters.
  - `ExponentialMovingAverage(initial, alpha)` smooths values. `update()` returns the new
    average.
  - The controllers are `PositionController`, `FollowPositionController`,
    `FollowAngleController`, `ContactForceController`, `VelocityController`,
    `UndampedPositionController`, `UndampedVelocityController` and
    `AdaptiveForceController`. Each keeps its own state and advances one step per
    `step()` call. The default period is 0.09 s.
  - `desired_force(index)` returns `3 + sin(pi * index / 15)`.
- `forcebot.session` – the control loop and its CSV loggers.
  - `ForceControlLoop` runs the loop.
  - `PoseRecorder` logs tool poses.
  - `FilterRecorder` logs forces with Fz replaced by its smoothed value.

## Reading the sensor

```python
from forcebot.netft import NetFTClient

with NetFTClient("192.168.1.1", 49152, 1.0) as sensor:
    sensor.set_bias()
    sample = sensor.read()
    print(sample.status, sample.forces)
```

## Working with raw packets

```python
from forcebot.netft import Command, build_request, parse_response

packet = build_request(Command.REALTIME, 1)   # 8 bytes, network byte order
# record = parse_response(raw_36_bytes)
```

## Running a controller by hand

```python
from forcebot.controllers import (
    ContactForceController,
    ExponentialMovingAverage,
    ImpedanceParams,
    desired_force,
)

params = ImpedanceParams(mass=35.0, damping=550.0, stiffness=0.0)
controller = ContactForceController(params, 0.25, 0.09)
smoother = ExponentialMovingAverage(0.0, 0.1)

for i, measured in enumerate([-2.9, -3.1, -3.4]):
    smoother.update(measured)
    next_y = controller.step(desired_force(i), -measured)
```

## The control loop

`ForceControlLoop(robot, sensor, params, alpha, period)` needs two objects.

- The robot object must provide:
  - `get_actual_tcp_pose()`
  - `move_l(pose)`
  - `servo_l(pose, speed, acceleration, time, lookahead_time, gain)`
- The sensor object must provide `read()`, which returns a `Response`, and `set_bias()`.
  A `NetFTClient` fits this.

When the loop is constructed, it reads the start pose, moves the robot there and zeroes the
sensor.

Each `step()` does the following:

1. Reads the current pose and one force sample.
2. Smooths Fz with an `ExponentialMovingAverage`.
3. Steps a `ContactForceController` along Y with `-Fz` against `desired_force`. The
   controller is built from the parameters' mass, damping and `stiffness_0`.
4. Commands the start pose, with the new Y, through `servo_l`.
5. Returns that pose.

`run(iterations)` steps repeatedly and sleeps one period between steps. It runs forever when
`iterations` is `None`, and returns the number of steps taken.

Before running, you can assign the attributes `pose_recorder`, `force_recorder`,
`filter_recorder` and `serial_port` to turn on logging and serial forwarding.

## What is not included

- The package has no command-line program.
- It has no robot driver. You supply the robot object yourself.

## Tests

The tests use pytest, which comes with the `test` extra.