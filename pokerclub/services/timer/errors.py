class TimerError(Exception):
    """Base class for failures surfaced to the API layer."""

    reason = 'timer_error'

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class NotFound(TimerError):
    reason = 'not_found'


class InvalidTransition(TimerError):
    reason = 'invalid_transition'

    def __init__(self, message, action=None, status=None):
        super().__init__(message)
        self.action = action
        self.status = status


class InvalidSchedule(TimerError):
    reason = 'invalid_schedule'


class PreconditionFailed(TimerError):
    reason = 'precondition_failed'


class TimerConflict(TimerError):
    reason = 'conflict'
