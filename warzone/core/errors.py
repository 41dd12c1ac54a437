"""Exceptions raised by the Warzone game core."""

from __future__ import annotations


class WarzoneError(Exception):
    """Base class for every error the game core reports to its caller."""


class OutOfRangeError(WarzoneError, ValueError):
    """A mission level outside the catalog was requested."""

    def __init__(self, level: object, lowest: int, highest: int) -> None:
        super().__init__(f"Mission level {level!r} is outside {lowest}..{highest}")
        self.level = level
        self.lowest = lowest
        self.highest = highest


class OutOfAmmoError(WarzoneError):
    """The player pulled the trigger with an empty magazine."""


class SessionClosedError(WarzoneError):
    """An action was issued against a cleared or exited session."""


class PersistenceError(WarzoneError):
    """The account store could not write a player record."""


class MissionLockedError(WarzoneError):
    """The player has not unlocked the requested mission yet."""


class AuthenticationError(WarzoneError):
    """Unknown nickname or wrong password."""


class RegistrationError(WarzoneError):
    """A new account could not be created."""
