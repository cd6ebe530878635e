"""Fragment merging and duplicate-section detection.

Fragments are concatenated byte-for-byte in sort order. A single forward
scan over the concatenated bytes then picks out "[identifier]" header
lines; nothing else in the content is interpreted. An identifier that
appears twice within one merge aborts it before a candidate is returned.
"""

import logging
import re
from dataclasses import dataclass, field
from itertools import accumulate
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from fragment_sync.errors import DuplicateSectionError, ReadError

logger = logging.getLogger(__name__)

# A whole line (terminator already stripped) of the form "[identifier]"
HEADER_PATTERN = re.compile(rb"^[ \t]*\[([^\[\]\r\n]+)\][ \t]*$")


@dataclass(frozen=True)
class Fragment:
    """One input file contributing content to a category."""

    category: str
    path: Path
    content: bytes

    @property
    def sort_key(self) -> str:
        return self.path.name

    @property
    def ends_with_newline(self) -> bool:
        return not self.content or self.content.endswith((b"\n", b"\r"))


@dataclass
class Section:
    """A block of lines introduced by a header.

    Attributes:
        identifier: Name inside the brackets, None for the preamble
                    before the first header
        header: The raw header line (empty for the preamble)
        body: Raw lines following the header, terminators included
        source: Fragment the section came from
        line_number: 1-based line of the header (or of the preamble start)
    """
    identifier: Optional[str]
    header: bytes
    body: List[bytes]
    source: Path
    line_number: int


@dataclass
class MergeResult:
    """Output of a successful merge."""

    candidate: bytes
    fragments: List[Fragment] = field(default_factory=list)
    sections: List[Section] = field(default_factory=list)

    @property
    def identifiers(self) -> List[str]:
        """Section identifiers in merge order."""
        return [s.identifier for s in self.sections if s.identifier is not None]


def parse_header(line: bytes) -> Optional[str]:
    """Return the section identifier if line is a header, else None."""
    match = HEADER_PATTERN.match(line.rstrip(b"\r\n"))
    if match is None:
        return None
    identifier = match.group(1).strip(b" \t")
    if not identifier:
        return None
    return identifier.decode("utf-8", errors="surrogateescape")


def _build_sections(lines: Iterable[Tuple[bytes, Path, int]]) -> List[Section]:
    """Group (line, source, line_number) triples into sections.

    Lines before the first header of each source form a preamble section
    with identifier None; it is omitted when there are no such lines.
    """
    sections: List[Section] = []
    current: Optional[Section] = None

    for line, source, line_number in lines:
        identifier = parse_header(line)
        if identifier is None:
            if current is None or current.source != source:
                if current is not None:
                    sections.append(current)
                current = Section(
                    identifier=None, header=b"", body=[], source=source, line_number=line_number
                )
            current.body.append(line)
            continue
        if current is not None:
            sections.append(current)
        current = Section(
            identifier=identifier,
            header=line,
            body=[],
            source=source,
            line_number=line_number,
        )

    if current is not None:
        sections.append(current)

    return sections


def parse_sections(content: bytes, source: Path) -> List[Section]:
    """Split content into sections with a single forward scan.

    Lines before the first header form a preamble section with
    identifier None; it is omitted when there are no such lines.
    """
    return _build_sections(
        (line, source, line_number)
        for line_number, line in enumerate(content.splitlines(keepends=True), start=1)
    )


def iter_candidate_lines(
    candidate: bytes, fragments: List[Fragment]
) -> Iterator[Tuple[bytes, Path, int]]:
    """Yield each line of the concatenated candidate with its origin.

    A line is attributed to the fragment it starts in, so a fragment
    lacking a final newline owns the line it is glued onto. Line numbers
    count lines starting in that fragment.
    """
    ends = list(accumulate(len(f.content) for f in fragments))
    index = 0
    offset = 0
    line_number = 0
    for line in candidate.splitlines(keepends=True):
        while offset >= ends[index]:
            index += 1
            line_number = 0
        line_number += 1
        yield line, fragments[index].path, line_number
        offset += len(line)


def load_fragments(paths: Iterable[Path], category: str) -> List[Fragment]:
    """Read the full byte content of each fragment, preserving order.

    Raises:
        ReadError: If any fragment can't be read
    """
    fragments = []
    for path in paths:
        try:
            content = Path(path).read_bytes()
        except OSError as e:
            raise ReadError(path, str(e)) from e
        fragments.append(Fragment(category=category, path=Path(path), content=content))
    return fragments


def merge_fragments(fragments: List[Fragment]) -> MergeResult:
    """Concatenate fragments and check section identifiers are unique.

    Headers are looked for in the concatenated bytes, so identifiers and
    duplicates always describe the candidate that would be written.

    Args:
        fragments: Fragments in merge order

    Returns:
        MergeResult with the candidate buffer and parsed sections

    Raises:
        DuplicateSectionError: If an identifier occurs more than once
    """
    for fragment in fragments[:-1]:
        if not fragment.ends_with_newline:
            logger.warning(
                f"Fragment {fragment.path.name} does not end with a newline; "
                f"the next fragment's first line will be joined to it"
            )

    candidate = b"".join(f.content for f in fragments)

    seen: Dict[str, Path] = {}
    sections = _build_sections(iter_candidate_lines(candidate, fragments))
    for section in sections:
        if section.identifier is None:
            continue
        if section.identifier in seen:
            raise DuplicateSectionError(
                section.identifier,
                seen[section.identifier],
                section.source,
            )
        seen[section.identifier] = section.source

    logger.debug(
        f"Merged {len(fragments)} fragment(s) into {len(candidate)} bytes, "
        f"{len(seen)} section(s)"
    )
    return MergeResult(candidate=candidate, fragments=list(fragments), sections=sections)
