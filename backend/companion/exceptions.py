"""Domain errors raised by the companion services."""

from companion.models.context import LocationErrorCode


class CompanionError(Exception):
    pass


class ModeTransitionError(CompanionError):
    """Operation is not valid in the current trip mode."""


class MessageNotFoundError(CompanionError):
    def __init__(self, message_id: str):
        super().__init__(f"Message {message_id} not found")
        self.message_id = message_id


class ActivityNotFoundError(CompanionError):
    def __init__(self, activity_id: str):
        super().__init__(f"Activity {activity_id} not found")
        self.activity_id = activity_id


class LocationError(CompanionError):
    def __init__(self, code: LocationErrorCode, detail: str = ""):
        super().__init__(detail or code.value)
        self.code = code
