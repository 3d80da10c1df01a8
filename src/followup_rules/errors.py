"""Exceptions raised by the follow-up SDK.

All of them subclass the builtin the server already maps to an HTTP
status (``ValueError`` → 400, ``KeyError`` → 404).  Bad passcode input and
failed label lookups are recovered where they happen and have no
exception type.
"""


class CatalogError(ValueError):
    """A catalog document is malformed or cannot be parsed."""


class OutOfSequenceAnswer(ValueError):
    """A caller answered a question that is not currently pending."""

    def __init__(self, qid: str, current: str | None) -> None:
        self.qid = qid
        self.current = current
        super().__init__(
            f"answer for '{qid}' is out of sequence (current question: {current!r})"
        )


class UnknownQuestion(KeyError):
    """A question id is not part of the catalog."""


class InterviewNotReady(ValueError):
    """Submission was attempted before completion or without consent."""
