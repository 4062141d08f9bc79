"""Errors raised by the progression engine and its codecs.

Every rejected request ends up as a ``TechnicalError``. The message is a
diagnostic for the logs only; the HTTP layer never shows it to the player.
"""


class ConfigurationError(RuntimeError):
    """Fatal misconfiguration detected at startup (e.g. wrong key length)."""


class TechnicalError(Exception):
    """A precondition of an engine operation was not met."""


class DecodeError(TechnicalError):
    """A state token or location string could not be decoded at all."""


class QuestNotFoundError(TechnicalError):
    """Unknown scenario, unknown quest order or wrong secret.

    The three cases are deliberately indistinguishable to the caller.
    """

    def __init__(self) -> None:
        super().__init__("Quest not found")


class LocationNotFreshError(TechnicalError):
    """The location reading was captured too far from the current time."""


class BadAccuracyError(TechnicalError):
    """The location reading is too far from the quest's target."""


class MissingStateError(TechnicalError):
    """The request needs an existing state token but none was sent.

    Carries the first quest's coordinates of the scenario (if any) so the
    client can tell the player where the scenario starts.
    """

    def __init__(self, scenario: str, lat: float | None = None, lon: float | None = None) -> None:
        super().__init__(f"State missing for scenario {scenario}")
        self.scenario = scenario
        self.lat = lat
        self.lon = lon
