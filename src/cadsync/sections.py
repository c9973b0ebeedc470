from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Iterator

from .groupcodes import GroupPair

logger = logging.getLogger(__name__)


class Section(Enum):
    OUTSIDE = "OUTSIDE"
    HEADER = "HEADER"
    TABLES = "TABLES"
    BLOCKS = "BLOCKS"
    ENTITIES = "ENTITIES"
    OTHER = "OTHER"


_NAMED_SECTIONS = {
    "HEADER": Section.HEADER,
    "TABLES": Section.TABLES,
    "BLOCKS": Section.BLOCKS,
    "ENTITIES": Section.ENTITIES,
}


class SectionStateMachine:
    """Tracks which DXF section a stream of group pairs is currently in.

    ``feed`` is called once per pair, in order. It returns ``True`` when the
    pair is part of a section body and ``False`` for delimiters and for
    anything read outside a section.
    """

    def __init__(self) -> None:
        self.state = Section.OUTSIDE
        self.sections_seen: list[str] = []
        self._expect_name = False

    def feed(self, code: str, value: str) -> bool:
        if self._expect_name:
            self._expect_name = False
            if code == "2":
                self.state = _NAMED_SECTIONS.get(value.upper(), Section.OTHER)
                self.sections_seen.append(value)
                return False
            logger.debug("SECTION marker without a name, got %s/%s", code, value)

        if code != "0":
            return self.state is not Section.OUTSIDE

        if value == "SECTION":
            if self.state is not Section.OUTSIDE:
                logger.debug("section %s was not terminated by ENDSEC", self.state.value)
            self.state = Section.OUTSIDE
            self._expect_name = True
            return False
        if value in ("ENDSEC", "EOF"):
            self.state = Section.OUTSIDE
            return False
        return self.state is not Section.OUTSIDE


def iter_section_pairs(
    pairs: Iterable[GroupPair],
    section: Section = Section.ENTITIES,
    machine: SectionStateMachine | None = None,
) -> Iterator[GroupPair]:
    machine = machine if machine is not None else SectionStateMachine()
    for code, value in pairs:
        if machine.feed(code, value) and machine.state is section:
            yield code, value
