from archtrace.engine.directedness import (
    AnalysisAdapter,
    ArchimateAdapter,
    BpmnAdapter,
    GenericAdapter,
    UmlAdapter,
    get_adapter,
    is_explicitly_undirected,
)
from archtrace.engine.expand import expand_from_node
from archtrace.engine.graph import (
    Adjacency,
    AnalysisEdge,
    AnalysisGraph,
    TraversalStep,
    build_adjacency,
    build_analysis_graph,
    get_traversal_steps,
)
from archtrace.engine.matrix import RelationshipMatrix, build_relationship_matrix
from archtrace.engine.model import Element, Model, Relationship
from archtrace.engine.paths import (
    bfs_k_shortest_paths,
    bfs_shortest_path,
    find_shortest_single_path_with_bans,
    query_k_shortest_paths_between,
    query_paths_between,
    query_related_elements,
)
from archtrace.engine.persistence import load_model, save_model
from archtrace.engine.traceability import (
    ExpandRequest,
    StopConditions,
    TraceEdge,
    TraceExpansionPatch,
    TraceFilters,
    TraceGraphState,
    TraceNode,
    TraceSelection,
    apply_expansion,
    create_initial_trace_graph,
)

__all__ = [
    "Element",
    "Relationship",
    "Model",
    "AnalysisAdapter",
    "GenericAdapter",
    "ArchimateAdapter",
    "UmlAdapter",
    "BpmnAdapter",
    "get_adapter",
    "is_explicitly_undirected",
    "AnalysisEdge",
    "AnalysisGraph",
    "TraversalStep",
    "Adjacency",
    "build_analysis_graph",
    "build_adjacency",
    "get_traversal_steps",
    "bfs_shortest_path",
    "bfs_k_shortest_paths",
    "query_related_elements",
    "query_paths_between",
    "find_shortest_single_path_with_bans",
    "query_k_shortest_paths_between",
    "RelationshipMatrix",
    "build_relationship_matrix",
    "TraceNode",
    "TraceEdge",
    "TraceFilters",
    "TraceSelection",
    "TraceGraphState",
    "StopConditions",
    "ExpandRequest",
    "TraceExpansionPatch",
    "create_initial_trace_graph",
    "apply_expansion",
    "expand_from_node",
    "load_model",
    "save_model",
]
