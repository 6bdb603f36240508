"""End-to-end transformation pipeline.

Split → transform (retry + batch scheduling) → reconcile → speech markup.

Example:
    config = PipelineConfig(batch_size_tokens=4000, mode=SchedulingMode.PARALLEL)
    async with GeminiTransformClient(api_key) as client:
        result = await TransformPipeline(config).run(document_text, client)
    print(result.text, result.failed_indices)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .config import PipelineConfig
from .core.cancellation import CancellationToken
from .core.enums import Stage
from .models import Chunk, PipelineResult, ProgressEvent, StructuralElement
from .runtime.chunking import ChunkPlanner, OverlapReconciler
from .runtime.observers import ProgressObserver, notify
from .runtime.retry import RetryOrchestrator, Sleep
from .runtime.scheduler import BatchScheduler, ChunkTransform
from .speech import apply_markup

logger = logging.getLogger(__name__)

Source = str | Sequence[StructuralElement]


class TransformPipeline:
    """Runs a document through chunking, transformation and reconciliation."""

    def __init__(
        self,
        config: PipelineConfig | None = None,
        *,
        observer: ProgressObserver | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        """Initialize pipeline.

        Args:
            config: Run configuration (defaults to PipelineConfig())
            observer: Optional progress observer
            sleep: Delay coroutine for backoff and rate limiting (defaults to asyncio.sleep)
        """
        self._config = config or PipelineConfig()
        self._observer = observer
        self._planner = ChunkPlanner(self._config.chunk_policy)
        self._orchestrator = RetryOrchestrator(
            self._config.backends,
            self._config.retry_policy,
            sleep=sleep,
        )
        self._scheduler = BatchScheduler(self._orchestrator, observer=observer, sleep=sleep)
        self._reconciler = OverlapReconciler(gap_marker=self._config.gap_marker)

    @property
    def config(self) -> PipelineConfig:
        return self._config

    def split(self, source: Source) -> list[Chunk]:
        """Chunk raw text or a sequence of structural elements."""
        if isinstance(source, str):
            return self._planner.plan(source)
        return self._planner.plan_structure(source)

    async def run(
        self,
        source: Source,
        transform: ChunkTransform,
        *,
        token: CancellationToken | None = None,
    ) -> PipelineResult:
        """Transform a whole document.

        Args:
            source: Raw text or structural elements
            transform: Async ``(chunk_text, backend_id) -> TransformOutput``
            token: Cancellation token for the run

        Returns:
            PipelineResult with the reconciled text and per-chunk results

        Raises:
            AuthError: If credentials are rejected
            ExhaustedBackendsError: Sequential run without auto-continue hit a failed chunk
            RunCancelledError: If the token is cancelled
        """
        chunks = self.split(source)
        notify(self._observer, ProgressEvent.stage_reached(Stage.SPLIT, 0, len(chunks)))

        results = await self._scheduler.run(chunks, transform, token=token)

        failed = [r.index for r in results if not r.success]
        if failed:
            logger.warning(
                f"{len(failed)} chunks failed to process",
                extra={"failed_indices": failed},
            )

        notify(
            self._observer,
            ProgressEvent.stage_reached(Stage.RECONCILE, len(results), len(chunks)),
        )
        text = apply_markup(self._reconciler.reconcile(results), self._config.speech_markup)

        notify(self._observer, ProgressEvent.stage_reached(Stage.COMPLETE, len(chunks), len(chunks)))
        return PipelineResult(text=text, chunks=chunks, results=results)
