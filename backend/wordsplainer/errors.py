"""Error types shared by the graph core and the content service layer."""

from __future__ import annotations


class WordsplainerError(Exception):
    """Base class for all Wordsplainer errors."""


class ServiceUnavailable(WordsplainerError):
    """The content service could not be reached or answered with an error.

    ``message`` is human-readable and safe to show in the UI.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MalformedResponse(WordsplainerError):
    """The content service answered, but the payload could not be used."""


class NotDetachable(WordsplainerError):
    """Attempted to detach a central node or an add-node."""

    def __init__(self, node_id: str):
        super().__init__(f"Node {node_id!r} cannot be detached")
        self.node_id = node_id
