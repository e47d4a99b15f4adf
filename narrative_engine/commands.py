"""Typed-command parsing shared by the story interpreters.

Input is split on whitespace and matched case-insensitively. Each story owns a
``Vocabulary`` that maps verbs and their aliases to a canonical name; the
interpreter then decides which dispatcher command (if any) the verb maps to.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from narrative_core import CommandOutcome, NarrativeState, NoticeKind, notice


@dataclass(frozen=True)
class ParsedCommand:
    verb: str
    args: tuple[str, ...]
    raw: str

    @property
    def arg(self) -> Optional[str]:
        """First argument, if any."""
        return self.args[0] if self.args else None


def parse_command(text: str) -> Optional[ParsedCommand]:
    """Tokenize one line of input. Blank input returns ``None``."""
    raw = text.strip()
    if not raw:
        return None
    tokens = raw.lower().split()
    return ParsedCommand(verb=tokens[0], args=tuple(tokens[1:]), raw=raw)


@dataclass(frozen=True)
class VerbSpec:
    name: str
    aliases: tuple[str, ...] = ()
    usage: str = ""
    summary: str = ""


class Vocabulary:
    """Verb table for one story."""

    def __init__(self, verbs: Iterable[VerbSpec]):
        self.verbs: tuple[VerbSpec, ...] = tuple(verbs)
        self._lookup: dict[str, str] = {}
        for spec in self.verbs:
            for word in (spec.name, *spec.aliases):
                if word in self._lookup:
                    raise ValueError(f"Verb '{word}' defined twice")
                self._lookup[word] = spec.name

    def resolve(self, verb: str) -> Optional[str]:
        return self._lookup.get(verb.lower())

    def help_lines(self) -> list[str]:
        lines = []
        for spec in self.verbs:
            usage = spec.usage or spec.name
            lines.append(f"  {usage:<24}{spec.summary}")
        return lines


def unrecognized(state: NarrativeState, parsed: ParsedCommand) -> CommandOutcome:
    return CommandOutcome(
        state=state,
        notices=(notice(
            NoticeKind.ERROR,
            "command.unrecognized",
            f"Command not recognized: {parsed.raw}",
            tick=state.tick_count,
            raw=parsed.raw,
        ),),
        recognized=False,
    )


def terminal_reply(state: NarrativeState, parsed: ParsedCommand) -> CommandOutcome:
    """Every command against a terminal session gets the same answer."""
    return CommandOutcome(
        state=state,
        notices=(notice(
            NoticeKind.SYSTEM,
            "session.terminal",
            "No response.",
            tick=state.tick_count,
            raw=parsed.raw,
        ),),
    )
