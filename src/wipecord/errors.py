"""
Errors

Exception taxonomy for the wipe engine. Element absence and interaction
failures are recoverable per message; authentication and session failures
abort the run.
"""


class WipecordError(Exception):
    """Base class for all wipecord errors"""


class ElementNotFound(WipecordError):
    """A semantic target's whole selector chain matched nothing"""

    def __init__(self, target: str):
        super().__init__(f"No element found for target '{target}'")
        self.target = target


class InteractionException(WipecordError):
    """A DOM call, synthetic event or navigation failed"""


class AuthenticationTimeout(WipecordError):
    """No logged-in Discord UI was detected within the login window"""


class SessionError(WipecordError):
    """The browser could not be launched or reached over CDP"""


class SelectorTableError(WipecordError):
    """The selector table file is missing targets or malformed"""
