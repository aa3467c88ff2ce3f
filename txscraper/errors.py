"""Exception types for run-level and worker-level failures."""


class RunError(RuntimeError):
    """Fatal to the whole run; the CLI exits non-zero after cleanup."""


class ListViewUnavailable(RunError):
    """The transactions list view could not be reached."""


class SnapshotWriteError(RunError):
    """The run snapshot could not be persisted."""


class WorkerContextError(RuntimeError):
    """A worker's browser context could not be created."""
