#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import os
from pathlib import Path

from spokable.transform import (
    CallbackObserver,
    GeminiTransformClient,
    PipelineConfig,
    ProgressEvent,
    SchedulingMode,
    TransformPipeline,
)


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Rewrite a text file into speech-ready prose via Gemini")
    p.add_argument("input", type=Path)
    p.add_argument("output", nargs="?", type=Path)
    p.add_argument("--mode", default="sequential", choices=["sequential", "parallel"])
    p.add_argument("--batch-size", type=int, default=None)
    p.add_argument("--verbose", action="store_true")
    return p.parse_args()


def print_progress(completed: int, total: int, event: ProgressEvent) -> None:
    status = "ok" if event.success else f"FAILED ({event.error_message})"
    print(f"[{completed}/{total}] chunk {event.chunk_index} via {event.backend_used}: {status}")


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    overrides = {"mode": SchedulingMode(args.mode)}
    if args.batch_size:
        overrides["batch_size_tokens"] = args.batch_size
    config = PipelineConfig.from_env(**overrides)

    pipeline = TransformPipeline(config, observer=CallbackObserver(print_progress))
    async with GeminiTransformClient(os.environ.get("GEMINI_API_KEY", "")) as client:
        result = await pipeline.run(args.input.read_text(encoding="utf-8"), client)

    if result.failed_indices:
        print(f"Chunks {result.failed_indices} failed; output has gaps")
    if args.output:
        args.output.write_text(result.text, encoding="utf-8")
        print(f"Wrote {len(result.text)} characters to {args.output}")
    else:
        print(result.text)


if __name__ == "__main__":
    asyncio.run(main())
