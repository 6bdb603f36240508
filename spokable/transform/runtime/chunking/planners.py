"""Chunk planning logic for splitting documents into bounded chunks.

This module provides the ChunkPlanner class that determines how to split a
document into chunks that respect the token budget of a ChunkPolicy, carrying
a bounded overlap from each chunk into the next.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass

from ...core.enums import ElementType
from ...models import Chunk, StructuralElement
from .definitions import CHARS_PER_TOKEN, ChunkPolicy, estimate_tokens
from .telemetry import log_chunk_plan

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
_SENTENCE_SEPARATOR = " "
_ELEMENT_SEPARATOR = "\n\n"


def _tokens_for_length(length: int) -> int:
    return math.ceil(length / CHARS_PER_TOKEN)


@dataclass(frozen=True)
class TextUnit:
    """Sentence-level span with its token estimate."""

    text: str
    tokens: int

    @classmethod
    def of(cls, text: str) -> TextUnit:
        return cls(text=text, tokens=estimate_tokens(text))


def split_sentences(text: str) -> list[TextUnit]:
    """Segment ``text`` at sentence-ending punctuation followed by whitespace."""
    return [TextUnit.of(part.strip()) for part in _SENTENCE_BOUNDARY.split(text) if part.strip()]


class ChunkPlanner:
    """Plans chunk boundaries for a document.

    The planner takes raw text (or typed structural elements) and a chunk
    policy, then packs sentences greedily into chunks whose token estimate
    stays within ``policy.batch_size``.
    """

    def __init__(self, policy: ChunkPolicy) -> None:
        """Initialize chunk planner.

        Args:
            policy: Chunking policy for the run
        """
        self._policy = policy

    @property
    def policy(self) -> ChunkPolicy:
        return self._policy

    def plan(self, text: str) -> list[Chunk]:
        """Plan chunks for raw text.

        Args:
            text: Document text

        Returns:
            Ordered chunks with contiguous indices starting at 0
        """
        groups = self._pack_sentences(split_sentences(text))
        chunks = [
            self._make_chunk(index, _SENTENCE_SEPARATOR.join(u.text for u in group))
            for index, group in enumerate(groups)
        ]

        log_chunk_plan(
            total_chunks=len(chunks),
            total_tokens=estimate_tokens(text),
            batch_size=self._policy.batch_size,
            overlap_size=self._policy.overlap_size,
        )
        return chunks

    def plan_structure(self, elements: Sequence[StructuralElement]) -> list[Chunk]:
        """Plan chunks over typed structural elements.

        Whole elements are packed under the same size rule as sentences. A
        heading starts a new chunk once the current chunk is already more than
        ``heading_break_ratio`` full. No overlap is carried between chunks.

        Args:
            elements: Document elements in reading order

        Returns:
            Ordered chunks, each listing the elements it was built from
        """
        batch_size = self._policy.batch_size
        heading_threshold = batch_size * self._policy.heading_break_ratio

        groups: list[list[StructuralElement]] = []
        current: list[StructuralElement] = []
        chars = 0

        for element in elements:
            if not element.content.strip():
                continue
            tokens = estimate_tokens(element.content)

            if (
                element.type == ElementType.HEADING
                and current
                and _tokens_for_length(chars) > heading_threshold
            ):
                groups.append(current)
                current, chars = [], 0

            if tokens > batch_size:
                if current:
                    groups.append(current)
                    current, chars = [], 0
                groups.extend(
                    [StructuralElement(type=element.type, content=piece)]
                    for piece in self._split_words(element.content)
                )
                continue

            candidate = (
                chars + len(_ELEMENT_SEPARATOR) + len(element.content)
                if current
                else len(element.content)
            )
            if current and _tokens_for_length(candidate) > batch_size:
                groups.append(current)
                current, candidate = [], len(element.content)

            current.append(element)
            chars = candidate

        if current:
            groups.append(current)

        chunks = [
            self._make_chunk(
                index,
                _ELEMENT_SEPARATOR.join(e.content for e in group),
                elements=tuple(group),
            )
            for index, group in enumerate(groups)
        ]

        log_chunk_plan(
            total_chunks=len(chunks),
            total_tokens=sum(estimate_tokens(e.content) for e in elements),
            batch_size=batch_size,
            overlap_size=0,
            structured=True,
        )
        return chunks

    def _pack_sentences(self, units: list[TextUnit]) -> list[list[TextUnit]]:
        """Greedily pack sentences into groups within the token budget.

        Args:
            units: Sentences in document order

        Returns:
            Sentence groups, one per chunk
        """
        batch_size = self._policy.batch_size
        groups: list[list[TextUnit]] = []
        current: list[TextUnit] = []
        chars = 0  # length of the space-joined current group

        for unit in units:
            # Oversized sentence: flush, then word-split with no overlap carry
            if unit.tokens > batch_size:
                if current:
                    groups.append(current)
                    current, chars = [], 0
                groups.extend([TextUnit.of(piece)] for piece in self._split_words(unit.text))
                continue

            if current and _tokens_for_length(chars + 1 + len(unit.text)) > batch_size:
                groups.append(current)
                current = self._overlap_carry(current, unit)
                chars = len(_SENTENCE_SEPARATOR.join(u.text for u in current))

            chars = chars + 1 + len(unit.text) if current else len(unit.text)
            current.append(unit)

        if current:
            groups.append(current)

        return groups

    def _overlap_carry(self, closed: list[TextUnit], upcoming: TextUnit) -> list[TextUnit]:
        """Select the trailing sentences of ``closed`` that seed the next chunk.

        Sentences are taken from the end while their summed estimate stays
        within ``overlap_size``. Leading carried sentences are dropped again
        if the carry plus ``upcoming`` would not fit the batch.

        Args:
            closed: Sentences of the chunk just emitted
            upcoming: Sentence that will follow the carry

        Returns:
            Ordered suffix of ``closed`` (possibly empty)
        """
        carry: list[TextUnit] = []
        tokens = 0
        for unit in reversed(closed):
            if tokens + unit.tokens > self._policy.overlap_size:
                break
            carry.insert(0, unit)
            tokens += unit.tokens

        while carry:
            joined = len(_SENTENCE_SEPARATOR.join(u.text for u in carry))
            if _tokens_for_length(joined + 1 + len(upcoming.text)) <= self._policy.batch_size:
                break
            carry.pop(0)

        return carry

    def _split_words(self, text: str) -> list[str]:
        """Pack whitespace-delimited words into pieces within the batch budget.

        A single word longer than the budget becomes its own piece.
        """
        pieces: list[str] = []
        words: list[str] = []
        chars = 0

        for word in text.split():
            candidate = chars + 1 + len(word) if words else len(word)
            if words and _tokens_for_length(candidate) > self._policy.batch_size:
                pieces.append(" ".join(words))
                words, candidate = [], len(word)
            words.append(word)
            chars = candidate

        if words:
            pieces.append(" ".join(words))
        return pieces

    @staticmethod
    def _make_chunk(
        index: int,
        text: str,
        elements: tuple[StructuralElement, ...] = (),
    ) -> Chunk:
        return Chunk(
            index=index,
            text=text,
            token_estimate=estimate_tokens(text),
            has_overlap=index > 0,
            elements=elements,
        )
