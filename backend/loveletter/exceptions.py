"""Exception hierarchy for the game server.

Rule modules raise these; the socket layer turns them into ``errorMsg``
events for the offending client.
"""


class LoveLetterError(Exception):
    """Base class for every game error."""

    @property
    def message(self):
        return str(self)


class InvalidAction(LoveLetterError):
    """Illegal turn, card index, target or guess. Nothing was mutated."""
    pass


class GameNotFound(LoveLetterError):
    def __init__(self, code):
        self.code = code
        super().__init__("Game not found.")


class PersistenceFailure(LoveLetterError):
    """A snapshot could not be written, read or deleted."""
    pass


class StartupConfigError(LoveLetterError):
    """Required configuration is missing; the process must not serve."""
    pass
