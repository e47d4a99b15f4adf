"""Exception hierarchy for the narrative engine.

Recoverable conditions (unknown commands, expired routes, terminal sessions)
are never exceptions: they surface as notices and leave state unchanged.
Only defects and caller errors raise.
"""


class NarrativeError(Exception):
    """Base class for narrative engine errors."""


class InvariantViolation(NarrativeError):
    """A snapshot broke a documented invariant.

    This is a defect in a transition function, not a runtime condition, and
    is never caught by the engine.
    """

    def __init__(self, story: str, detail: str):
        self.story = story
        self.detail = detail
        super().__init__(f"[{story}] invariant violated: {detail}")


class UnknownStoryError(NarrativeError, KeyError):
    """Requested story slug is not registered."""

    def __init__(self, slug: str, available: list[str]):
        self.slug = slug
        self.available = available
        super().__init__(f"Unknown story '{slug}'. Available: {', '.join(available) or 'none'}")

    def __str__(self) -> str:
        return self.args[0]
