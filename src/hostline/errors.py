"""Error taxonomy for the call path.

None of these are fatal to the process; each maps to a recovery the
orchestrator applies to the affected call only.
"""


class HostlineError(Exception):
    """Base class for call-path errors."""


class RecognitionError(HostlineError):
    """Low-confidence transcript or recognizer failure. Caller is asked to repeat."""


class ResponseGenerationError(HostlineError):
    """Responder failed or timed out."""


class PersistenceError(HostlineError):
    """Store unavailable while finalizing or booking."""


class CapacityConflict(HostlineError):
    """Lost the race for a reservation slot after re-validation."""


class CarrierTimeout(HostlineError):
    """Call exceeded its wall-clock cap or the carrier ended it."""


class InvalidTransition(HostlineError):
    """State change not allowed from the session's current status."""


class LockTimeout(HostlineError):
    """Could not acquire a session lock in time."""
