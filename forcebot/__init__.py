"""Force/torque sensor access, admittance controllers and a force-control loop."""

__version__ = "0.1.0"

__all__ = ["controllers", "netft", "session", "tcpsocket"]