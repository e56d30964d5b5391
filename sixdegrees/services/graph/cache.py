from typing import Optional

from sixdegrees.config import load_settings

from .loader import load_graph
from .mention_graph import MentionGraph

_graph: Optional[MentionGraph] = None
_graph_path: Optional[str] = None


def edge_log_path() -> str:
    return _graph_path or load_settings().output_file


def get_graph() -> MentionGraph:
    """Return the process-wide graph, loading the edge log on first use."""
    global _graph
    if _graph is None:
        _graph = load_graph(edge_log_path())
    return _graph


def reload_graph(path: Optional[str] = None) -> MentionGraph:
    global _graph, _graph_path
    if path:
        _graph_path = path
    _graph = load_graph(edge_log_path())
    return _graph


def reset_graph() -> None:
    global _graph, _graph_path
    _graph = None
    _graph_path = None
