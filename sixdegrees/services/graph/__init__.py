"""Channel mention graph package.

The graph is rebuilt from the edge log on every load and is read-only
afterwards; queries do no I/O.
"""
from .mention_graph import MentionGraph, PathResult, HopDetail
from .loader import iter_edge_records, load_graph
from .cache import get_graph, reload_graph, reset_graph
from .export import export_to_neo4j, load_channel_table

__all__ = [
    # engine
    'MentionGraph','PathResult','HopDetail',
    # loading
    'iter_edge_records','load_graph',
    # process-wide instance
    'get_graph','reload_graph','reset_graph',
    # export
    'export_to_neo4j','load_channel_table',
]
