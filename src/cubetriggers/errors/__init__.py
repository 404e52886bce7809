"""Custom error types used in cubetriggers."""


class CubeTriggersError(Exception):
    """Base class for cubetriggers errors."""


class PermanentJobError(CubeTriggersError):
    """A job failure that retrying cannot fix."""


class InvalidJobPayloadError(PermanentJobError):
    """Job payload failed validation."""


class ImportRunNotFoundError(PermanentJobError):
    """The referenced import run does not exist."""

    def __init__(self, import_run_id: str) -> None:
        super().__init__(f"Import run not found: {import_run_id}")
        self.import_run_id = import_run_id


class InvalidStatusTransitionError(PermanentJobError):
    """An import run was asked to move along an edge its state machine lacks."""

    def __init__(self, import_run_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Import run {import_run_id} cannot transition from {current} to {target}"
        )
        self.import_run_id = import_run_id
        self.current = current
        self.target = target
