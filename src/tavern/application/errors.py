class ActionProcessingError(RuntimeError):
    """An action could not be processed; persisted state is unchanged and the action may be retried."""


class NarratorUnavailableError(RuntimeError):
    pass
