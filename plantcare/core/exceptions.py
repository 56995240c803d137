class PlantCareError(Exception):
    """Base class for errors raised by the scheduling core."""


class TaskNotFoundError(PlantCareError):
    def __init__(self, task_id: int):
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class PushChannelUnavailableError(PlantCareError):
    """The push provider could not be initialised (missing or bad credentials)."""


# Codes reported by FCM when a registration token will never work again
TOKEN_NOT_REGISTERED = "messaging/registration-token-not-registered"
INVALID_REGISTRATION_TOKEN = "messaging/invalid-registration-token"
INVALID_TOKEN_CODES = frozenset({TOKEN_NOT_REGISTERED, INVALID_REGISTRATION_TOKEN})


class PushDeliveryError(PlantCareError):
    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def is_invalid_token(self) -> bool:
        return self.code in INVALID_TOKEN_CODES
