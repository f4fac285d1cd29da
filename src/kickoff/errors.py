class KickoffError(Exception):
    pass


class ConfigError(KickoffError):
    pass


class GenerationError(KickoffError):
    def __init__(self, message: str, *, step: int | None = None):
        super().__init__(message)
        self.step = step


class TurnCancelled(KickoffError):
    pass
