"""Engine exceptions for contract violations on round inputs."""


class EngineError(ValueError):
    """Base class for fairness engine input errors."""


class SeedDecodeError(EngineError):
    """Seed material is too short or is not hexadecimal."""


class DropColumnError(EngineError):
    """Drop column is not an integer in the valid column range."""
