"""ArchTrace MCP server: exposes model analysis as tools for AI agents."""

from __future__ import annotations

import functools
import logging
import os
import sys
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from mcp.server.fastmcp import FastMCP

from archtrace.client import ArchTrace
from archtrace.engine.directedness import available_notations
from archtrace.engine.traceability import patch_to_dict

# All logging goes to stderr; stdout is reserved for JSON-RPC
logging.basicConfig(stream=sys.stderr, level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger("archtrace.mcp")

# ---------------------------------------------------------------------------
# Client singleton for single-process stdio MCP
# ---------------------------------------------------------------------------

_CLIENT: ArchTrace | None = None


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    global _CLIENT
    model_path = os.environ.get("ARCHTRACE_MODEL_PATH", "model.json")
    notation = os.environ.get("ARCHTRACE_NOTATION", "generic")
    logger.info("Loading model %s (notation=%s)", model_path, notation)
    _CLIENT = ArchTrace.from_file(model_path, notation=notation)
    try:
        yield {}
    finally:
        _CLIENT = None


mcp = FastMCP(
    "ArchTrace",
    instructions=(
        "ArchTrace answers graph questions about an enterprise-architecture model. "
        "Elements are connected by typed relationships; undirected relationships can be "
        "walked both ways. Use related_elements for reachability, shortest_path / "
        "k_shortest_paths / paths_between for how two elements connect, and trace_expand "
        "to build an incremental traceability graph. All searches are hop-bounded (max 16)."
    ),
    lifespan=app_lifespan,
)


def _get_client() -> ArchTrace:
    """Return the active ArchTrace client."""
    if _CLIENT is None:
        raise RuntimeError("ArchTrace client is not initialized")
    return _CLIENT


def _safe_tool(fn: Callable[..., dict]) -> Callable[..., dict]:
    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> dict:
        try:
            return fn(*args, **kwargs)
        except Exception as exc:
            logger.exception("Tool %s failed", fn.__name__)
            return {"error": True, "message": f"{type(exc).__name__}: {exc}"}
    return wrapper


# ===================================================================
# Model tools (2)
# ===================================================================


@mcp.tool()
@_safe_tool
def model_stats() -> dict:
    """Element and relationship counts of the loaded model."""
    return _get_client().stats().model_dump()


@mcp.tool()
@_safe_tool
def get_element(id: str) -> dict:
    """Get an element by its ID.

    Args:
        id: The element ID to look up.
    """
    el = _get_client().get_element(id)
    if el is None:
        return {"found": False, "id": id}
    return el.model_dump()


# ===================================================================
# Analysis tools (5)
# ===================================================================


@mcp.tool()
@_safe_tool
def related_elements(
    start: str,
    direction: str = "both",
    max_depth: int = 3,
    relationship_types: list[str] | None = None,
    layers: list[str] | None = None,
    element_types: list[str] | None = None,
) -> dict:
    """Find elements reachable from a start element.

    Args:
        start: Element ID to start from.
        direction: "outgoing", "incoming" or "both".
        max_depth: Maximum hops (1-16).
        relationship_types: Only walk these relationship types.
        layers: Only report elements in these layers.
        element_types: Only report elements of these types.
    """
    res = _get_client().related(
        start,
        direction=direction,
        max_depth=max_depth,
        relationship_types=relationship_types,
        layers=layers,
        element_types=element_types,
    )
    return {"count": len(res.hits), **res.model_dump()}


@mcp.tool()
@_safe_tool
def shortest_path(
    start: str,
    target: str,
    direction: str = "both",
    max_hops: int = 6,
    relationship_types: list[str] | None = None,
) -> dict:
    """Find one shortest path between two elements.

    Args:
        start: Element ID to start from.
        target: Element ID to reach.
        direction: "outgoing", "incoming" or "both".
        max_hops: Maximum path length in relationships (0-16).
        relationship_types: Only walk these relationship types.
    """
    path = _get_client().shortest_path(
        start,
        target,
        direction=direction,
        max_hops=max_hops,
        relationship_types=relationship_types,
    )
    return {"found": path is not None, "path": path}


@mcp.tool()
@_safe_tool
def k_shortest_paths(
    start: str,
    target: str,
    k: int = 3,
    direction: str = "both",
    max_hops: int = 6,
    relationship_types: list[str] | None = None,
) -> dict:
    """Find up to k loopless paths between two elements, shortest first.

    Args:
        start: Element ID to start from.
        target: Element ID to reach.
        k: Maximum number of paths.
        direction: "outgoing", "incoming" or "both".
        max_hops: Maximum path length in relationships (0-16).
        relationship_types: Only walk these relationship types.
    """
    paths = _get_client().k_shortest_paths(
        start,
        target,
        k=k,
        direction=direction,
        max_hops=max_hops,
        relationship_types=relationship_types,
    )
    return {"count": len(paths), "paths": paths}


@mcp.tool()
@_safe_tool
def paths_between(
    source: str,
    target: str,
    direction: str = "both",
    relationship_types: list[str] | None = None,
    layers: list[str] | None = None,
    max_paths: int = 10,
    mode: str = "shortest",
) -> dict:
    """Find paths between two elements with the relationships walked.

    Args:
        source: Element ID to start from.
        target: Element ID to reach.
        direction: "outgoing", "incoming" or "both".
        relationship_types: Only walk these relationship types.
        layers: Intermediate elements must be in these layers.
        max_paths: Maximum number of paths to return.
        mode: "shortest" for every path of the shortest length, or "k-shortest"
            to continue with longer loopless alternatives.
    """
    res = _get_client().paths_between(
        source,
        target,
        direction=direction,
        relationship_types=relationship_types,
        layers=layers,
        max_paths=max_paths,
        mode=mode,
    )
    return res.model_dump()


@mcp.tool()
@_safe_tool
def trace_expand(
    seeds: list[str],
    direction: str = "both",
    depth: int = 2,
    relationship_types: list[str] | None = None,
    layers: list[str] | None = None,
    element_types: list[str] | None = None,
    stop_at_layer: list[str] | None = None,
    stop_at_type: list[str] | None = None,
) -> dict:
    """Seed a traceability graph and expand every seed once.

    Args:
        seeds: Element IDs to seed the graph with.
        direction: "outgoing", "incoming" or "both".
        depth: Expansion depth per seed (0-16).
        relationship_types: Only walk these relationship types.
        layers: Only include and traverse elements in these layers.
        element_types: Only include and traverse elements of these types.
        stop_at_layer: Include but do not expand past elements in these layers.
        stop_at_type: Include but do not expand past elements of these types.
    """
    explorer = _get_client().explorer(seeds)
    patches = []
    for seed in dict.fromkeys(seeds):
        patch = explorer.compute(
            seed,
            direction=direction,
            depth=depth,
            relationship_types=relationship_types,
            layers=layers,
            element_types=element_types,
            stop_at_layer=stop_at_layer,
            stop_at_type=stop_at_type,
        )
        explorer.apply(patch)
        patches.append(patch_to_dict(patch))
    return {"state": explorer.to_dict(), "patches": patches}


@mcp.tool()
@_safe_tool
def relationship_matrix(
    rows: list[str],
    cols: list[str],
    relationship_types: list[str] | None = None,
    direction: str = "both",
) -> dict:
    """Count relationships between two sets of elements.

    Args:
        rows: Row element IDs.
        cols: Column element IDs.
        relationship_types: Only count these relationship types.
        direction: "rowToCol", "colToRow" or "both".
    """
    res = _get_client().matrix(
        rows, cols, relationship_types=relationship_types, direction=direction
    )
    return res.model_dump()


# ===================================================================
# Resources (1)
# ===================================================================


@mcp.resource("archtrace://schema")
def schema_resource() -> str:
    """ArchTrace data model reference."""
    return (
        "# ArchTrace Data Model\n\n"
        "## Elements\n"
        "Each element has an `id`, a `type` (e.g. 'ApplicationComponent'), an optional "
        "`layer` (e.g. 'Application') and an optional `name`.\n\n"
        "## Relationships\n"
        "A relationship links a source element to a target element and has a `type`.\n"
        "- `attrs.isDirected: false` makes it walkable in both directions\n"
        "- Relationships with a missing endpoint are ignored by analysis\n\n"
        "## Directions\n"
        "- `outgoing`: follow source -> target\n"
        "- `incoming`: walk relationships backwards\n"
        "- `both`: either way\n\n"
        f"## Notations\n{', '.join(available_notations())}\n"
    )


# ===================================================================
# Entry point
# ===================================================================


def run_server() -> None:
    """Run the ArchTrace MCP server over stdio."""
    mcp.run(transport="stdio")
