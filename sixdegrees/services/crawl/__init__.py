"""Resumable channel-mention crawler.

Structure:
- base.py: mention pattern, edge codec and timestamp/link helpers
- pipeline.py: append-only JSONL edge sink (+ debug stream sink)
- checkpoint.py: single-slot resume marker
- channels.py: cached channel directory
- scanner.py: per-channel history scan and edge extraction
- orchestrator.py: crawl loop, resume and metadata export
- runner.py: CLI entrypoint (crawl, queries, shell, Neo4j export)

History is streamed page by page; only the per-channel dedup set and a small
write buffer are held in memory.
"""

__all__ = [
    "base",
    "pipeline",
    "checkpoint",
    "channels",
    "scanner",
    "orchestrator",
]
