from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from .config import DEFAULT_ATTRIBUTE
from .errors import InvariantViolation, MalformedInput
from .events import Attribute, CData, Characters, EndElement, ParseEvent, StartElement
from .models import TransformReport


def _ascii_lower(s: str) -> str:
    # ASCII-only case fold: "İDREF" must not match "idref"
    return "".join(chr(ord(c) + 32) if "A" <= c <= "Z" else c for c in s)


def has_trigger_attribute(attributes: Iterable[Attribute], name: str = DEFAULT_ATTRIBUTE) -> bool:
    """True if any attribute's local name equals `name`, ignoring ASCII case and namespace."""
    wanted = _ascii_lower(name)
    return any(_ascii_lower(a.local_name) == wanted for a in attributes)


class SuppressionFilter:
    """
    Decides per event whether it reaches the sink.

    One flag per open element; the flag of the innermost element governs
    every Characters/CData event seen while it is on top. Children get
    their own flag, so a flagged parent never hides a child's text.
    """

    def __init__(self, attribute_name: str = DEFAULT_ATTRIBUTE, report: Optional[TransformReport] = None) -> None:
        self.attribute_name = attribute_name
        self.report = report if report is not None else TransformReport()
        self._stack: List[bool] = []

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def suppressing(self) -> bool:
        return bool(self._stack) and self._stack[-1]

    def accept(self, ev: ParseEvent) -> bool:
        """Update the stack for `ev` and return whether it must be forwarded."""
        if isinstance(ev, StartElement):
            flagged = has_trigger_attribute(ev.attributes, self.attribute_name)
            self._stack.append(flagged)
            self.report.elements += 1
            if flagged:
                self.report.flagged_elements += 1
            if len(self._stack) > self.report.max_depth:
                self.report.max_depth = len(self._stack)
            return True

        if isinstance(ev, EndElement):
            if not self._stack:
                raise InvariantViolation(f"end tag </{ev.name.qualified}> with no open element")
            self._stack.pop()
            return True

        if isinstance(ev, (Characters, CData)):
            if self.suppressing:
                self.report.text_suppressed += 1
                self.report.chars_suppressed += len(ev.text)
                return False
            self.report.text_forwarded += 1
            return True

        return True

    def filter(self, events: Iterable[ParseEvent]) -> Iterator[ParseEvent]:
        for ev in events:
            if self.accept(ev):
                yield ev

    def finish(self) -> None:
        if self._stack:
            raise MalformedInput(f"input ended with {len(self._stack)} unclosed element(s)")
