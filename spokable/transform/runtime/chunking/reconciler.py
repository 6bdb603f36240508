"""Overlap reconciliation for transformed chunks.

Adjacent chunks share overlap text on purpose; after transformation the
shared text usually appears twice, once at the end of a piece and once at the
start of the next. The OverlapReconciler strips that duplicate and joins the
pieces into one continuous text.
"""

from __future__ import annotations

from collections.abc import Sequence

from ...models import ChunkResult
from .telemetry import log_reconcile

DEFAULT_WINDOW = 500
DEFAULT_MIN_OVERLAP = 50
DEFAULT_SEPARATOR = "\n\n"


class OverlapReconciler:
    """Merges successful chunk outputs, removing duplicated overlap.

    Failed chunks and blank outputs are skipped. By default the gap a failed
    chunk leaves is silent; pass ``gap_marker`` to insert a visible marker
    wherever failed chunks were dropped, including the start and end.
    """

    def __init__(
        self,
        *,
        window: int = DEFAULT_WINDOW,
        min_overlap: int = DEFAULT_MIN_OVERLAP,
        separator: str = DEFAULT_SEPARATOR,
        gap_marker: str | None = None,
    ) -> None:
        """Initialize reconciler.

        Args:
            window: Characters compared at each side of a boundary
            min_overlap: Shortest match accepted as duplicated overlap
            separator: Text placed between reconciled pieces
            gap_marker: Optional marker inserted where failed chunks were skipped
        """
        if min_overlap < 1:
            raise ValueError("min_overlap must be at least 1")
        if window < min_overlap:
            raise ValueError("window must be at least min_overlap")
        self._window = window
        self._min_overlap = min_overlap
        self._separator = separator
        self._gap_marker = gap_marker

    def find_overlap(self, previous: str, current: str) -> int:
        """Length of the longest suffix of ``previous`` that prefixes ``current``.

        Only the last/first ``window`` characters are compared and matches
        shorter than ``min_overlap`` are ignored.

        Returns:
            Matched length, or 0 when no match reaches the threshold
        """
        end = previous[-self._window :]
        start = current[: self._window]
        for length in range(min(len(end), len(start)), self._min_overlap - 1, -1):
            if end.endswith(start[:length]):
                return length
        return 0

    def reconcile(self, results: Sequence[ChunkResult]) -> str:
        """Join successful results in index order into one text.

        Blank outputs are skipped. With a ``gap_marker`` set, one marker
        stands for every run of failed indices, including runs at the start
        or end of the document.

        Args:
            results: Chunk results; failed ones are ignored

        Returns:
            Reconciled text ("" when nothing succeeded)
        """
        successful = sorted((r for r in results if r.success), key=lambda r: r.index)
        if not successful:
            return ""

        first_index = min(r.index for r in results)
        last_index = max(r.index for r in results)
        leading_gap = successful[0].index > first_index
        trailing_gap = successful[-1].index < last_index

        if len(successful) == 1 and (self._gap_marker is None or not (leading_gap or trailing_gap)):
            return successful[0].output_text or ""

        pieces: list[str] = []
        tail = ""
        gap_open = False
        gaps = 0
        overlaps_stripped = 0

        def add(text: str) -> None:
            nonlocal tail
            pieces.append(text)
            tail = (tail + self._separator + text if tail else text)[-self._window :]

        def add_gap() -> None:
            nonlocal gaps, gap_open
            gaps += 1
            if self._gap_marker is not None and not gap_open:
                add(self._gap_marker)
                gap_open = True

        if leading_gap:
            add_gap()

        previous_index: int | None = None
        for result in successful:
            if previous_index is not None and result.index - previous_index > 1:
                add_gap()
            previous_index = result.index

            piece = result.output_text or ""
            matched = self.find_overlap(tail, piece) if tail else 0
            if matched:
                overlaps_stripped += 1
                piece = piece[matched:].strip()
            if not piece.strip():
                continue

            add(piece)
            gap_open = False

        if trailing_gap:
            add_gap()

        text = self._separator.join(pieces)
        log_reconcile(
            pieces=len(successful),
            overlaps_stripped=overlaps_stripped,
            gaps=gaps,
            output_chars=len(text),
        )
        return text
