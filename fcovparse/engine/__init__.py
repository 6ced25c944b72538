"""Parallel parsing engine."""

from .parallel import ChunkedParallelEngine, Chunk, EngineState, PerformanceStats, compute_chunks

__all__ = ["ChunkedParallelEngine", "Chunk", "EngineState", "PerformanceStats", "compute_chunks"]
