from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Iterable, List, Optional, TextIO

from sixdegrees.config import Settings, load_settings
from sixdegrees.errors import DirectoryUnavailable, MalformedEdgeRecord
from sixdegrees.services.graph.display import format_path, format_reachable, format_stats
from sixdegrees.services.graph.export import export_to_neo4j, load_channel_table
from sixdegrees.services.graph.loader import iter_edge_records, load_graph
from sixdegrees.services.graph.mention_graph import MentionGraph
from sixdegrees.services.slack_client import SlackClient

from .channels import ChannelDirectory
from .checkpoint import CheckpointStore, NullCheckpointStore
from .orchestrator import CrawlOrchestrator, CrawlSummary
from .pipeline import EdgeSink, StreamEdgeSink
from .scanner import MentionScanner

logger = logging.getLogger(__name__)

HELP_LINES = [
    "Commands:",
    "  path <from> <to>          - Find path between two channels",
    "  hops <from> <max>         - Show all channels within X hops",
    "  stats                     - Show graph statistics",
    "  help                      - Show this help",
    "  exit                      - Exit the shell",
]


def build_orchestrator(settings: Settings, client, *, stream: Optional[TextIO] = None) -> CrawlOrchestrator:
    """Wire the crawl components for normal or debug mode."""
    if settings.debug:
        sink = StreamEdgeSink(stream)
        checkpoints = NullCheckpointStore()
        metadata_path = None
    else:
        sink = EdgeSink(settings.output_file)
        checkpoints = CheckpointStore(settings.checkpoint_file)
        metadata_path = settings.metadata_file

    directory = ChannelDirectory(
        client,
        cache_path=settings.channels_cache_file,
        clear_cache=settings.clear_channel_cache,
        page_size=settings.channel_page_size,
    )

    def scanner_factory(names):
        return MentionScanner(
            client,
            sink,
            checkpoints,
            channel_names=names,
            archive_base=settings.archive_base_url,
            batch_size=settings.write_batch_size,
            checkpoint_every=settings.checkpoint_every_n_messages,
            page_size=settings.history_page_size,
            page_delay=settings.delay_between_message_pages,
        )

    return CrawlOrchestrator(
        directory,
        checkpoints,
        scanner_factory,
        workspace=settings.workspace_name,
        output_file=settings.output_file,
        metadata_path=metadata_path,
        channel_delay=settings.delay_between_channels,
    )


def run_crawl(settings: Settings) -> CrawlSummary:
    with SlackClient(settings.require_token()) as client:
        return build_orchestrator(settings, client).run()


def _emit(lines: Iterable[str], out: TextIO) -> None:
    for line in lines:
        out.write(line + "\n")


def cmd_path(graph: MentionGraph, src: str, dst: str, out: TextIO, max_hops: Optional[int] = None) -> bool:
    start = graph.resolve(src)
    if not start:
        out.write(f"[ERROR] Channel not found: {src}\n")
        return False
    end = graph.resolve(dst)
    if not end:
        out.write(f"[ERROR] Channel not found: {dst}\n")
        return False
    result = graph.shortest_path(start, end, max_hops=max_hops)
    _emit(format_path(result, graph.channel_name(start), graph.channel_name(end)), out)
    return result is not None


def cmd_hops(graph: MentionGraph, src: str, max_hops_text: str, out: TextIO) -> bool:
    try:
        max_hops = int(max_hops_text)
    except ValueError:
        max_hops = 0
    if max_hops < 1:
        out.write("[ERROR] Max hops must be a positive number\n")
        return False
    start = graph.resolve(src)
    if not start:
        out.write(f"[ERROR] Channel not found: {src}\n")
        return False
    reachable = graph.reachable_within(start, max_hops)
    _emit(format_reachable(reachable, graph.channel_name(start), max_hops, graph), out)
    return True


def run_shell(graph: MentionGraph, lines: Iterable[str], out: TextIO, *, prompt: str = "sixdegrees> ") -> int:
    """Line-oriented query shell; returns when input ends or on exit/quit."""
    _emit(HELP_LINES, out)
    out.write("\nExample: path lounge announcements\nExample: hops lounge 3\n\n")
    out.write(prompt)
    out.flush()
    for raw in lines:
        parts = raw.strip().split()
        command = parts[0].lower() if parts else ""
        if command in ("exit", "quit"):
            break
        if command == "path":
            if len(parts) < 3:
                out.write("[ERROR] Usage: path <from> <to>\n")
            else:
                cmd_path(graph, parts[1], parts[2], out)
        elif command == "hops":
            if len(parts) < 3:
                out.write("[ERROR] Usage: hops <from> <max>\n")
            else:
                cmd_hops(graph, parts[1], parts[2], out)
        elif command == "stats":
            _emit(format_stats(graph.statistics()), out)
        elif command == "help":
            _emit(HELP_LINES, out)
        elif command:
            out.write(f"[ERROR] Unknown command: {command}\n")
            out.write('Type "help" for available commands\n')
        out.write(prompt)
        out.flush()
    out.write("\nGoodbye!\n")
    return 0


def main(argv: Optional[List[str]] = None, *, out: Optional[TextIO] = None) -> int:
    out = out or sys.stdout
    settings = load_settings()

    parser = argparse.ArgumentParser(description="Map channel mentions and query the resulting graph")
    parser.add_argument("--edges", default=settings.output_file, help="Edge log (JSONL) to read or append to")
    sub = parser.add_subparsers(dest="cmd", required=True)

    crawl = sub.add_parser("crawl", help="Crawl every channel's history for channel mentions")
    crawl.add_argument("--clear-cache", action="store_true", help="Refetch the channel list")
    crawl.add_argument("--debug", action="store_true", help="Print edges instead of writing files")

    path = sub.add_parser("path", help="Find the shortest path between two channels")
    path.add_argument("source")
    path.add_argument("target")
    path.add_argument("--max-hops", type=int, default=None)

    hops = sub.add_parser("hops", help="List channels reachable within N hops")
    hops.add_argument("source")
    hops.add_argument("max_hops")

    sub.add_parser("stats", help="Show graph statistics")
    sub.add_parser("shell", help="Interactive query shell")

    exp = sub.add_parser("export-neo4j", help="Export channels and mentions to Neo4j")
    exp.add_argument("--metadata", default=settings.metadata_file, help="Crawl metadata file with the channel table")
    exp.add_argument("--batch-size", type=int, default=500)

    args = parser.parse_args(argv)
    settings.output_file = args.edges
    if args.cmd == "crawl":
        settings.debug = settings.debug or args.debug
        settings.clear_channel_cache = settings.clear_channel_cache or args.clear_cache

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    try:
        if args.cmd == "crawl":
            run_crawl(settings)
            return 0

        if args.cmd == "export-neo4j":
            channels = load_channel_table(args.metadata) if os.path.isfile(args.metadata) else None
            summary = export_to_neo4j(iter_edge_records(args.edges), channels, batch_size=args.batch_size)
            out.write(f"Exported {summary['channels']} channels and {summary['mentions']} mentions\n")
            return 0

        graph = load_graph(args.edges)
        if args.cmd == "path":
            return 0 if cmd_path(graph, args.source, args.target, out, max_hops=args.max_hops) else 1
        if args.cmd == "hops":
            return 0 if cmd_hops(graph, args.source, args.max_hops, out) else 2
        if args.cmd == "stats":
            _emit(format_stats(graph.statistics()), out)
            return 0
        if args.cmd == "shell":
            return run_shell(graph, sys.stdin, out)
    except DirectoryUnavailable as exc:
        logger.error("%s", exc)
        return 1
    except FileNotFoundError as exc:
        logger.error("Failed to load data: %s", exc)
        return 1
    except MalformedEdgeRecord as exc:
        logger.error("Failed to load data: %s", exc)
        return 1
    except RuntimeError as exc:
        # Missing credentials / unreachable database
        logger.error("%s", exc)
        return 1

    parser.error("unknown command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
