from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from langgraph.graph import END, StateGraph

from framework.llm.client import VertexGeminiClient
from framework.llm.config import VertexAIConfig
from framework.llm.model_cache import ModelSelectionCache
from framework.llm.model_selection import ModelSelectingInvoker
from workflows.diagnosis.v1.nodes.analyze import DiagnosisAnalyzer
from workflows.diagnosis.v1.schemas.llm import ANALYSIS_RESPONSE_SCHEMA, VERIFY_FIX_RESPONSE_SCHEMA
from workflows.diagnosis.v1.types import AnalysisState


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Invokers:
    analysis: ModelSelectingInvoker
    verify: ModelSelectingInvoker


def build_analysis_graph(analyzer: DiagnosisAnalyzer) -> Any:
    graph = StateGraph(AnalysisState)

    graph.add_node("generate", analyzer.generate)
    graph.add_node("parse", analyzer.parse)
    graph.add_node("repair", analyzer.repair)

    graph.set_entry_point("generate")
    graph.add_conditional_edges(
        "generate", analyzer.route_after_generate, {"parse": "parse", "end": END}
    )
    graph.add_conditional_edges(
        "parse", analyzer.route_after_parse, {"repair": "repair", "end": END}
    )
    graph.add_edge("repair", "parse")

    return graph.compile()


def build_vertex_invokers(cache: ModelSelectionCache) -> Invokers:
    vertex_config = VertexAIConfig.from_env()
    analysis_client = VertexGeminiClient(vertex_config, response_schema=ANALYSIS_RESPONSE_SCHEMA)
    verify_client = VertexGeminiClient(vertex_config, response_schema=VERIFY_FIX_RESPONSE_SCHEMA)
    # Both workflows share one cache so a model found by either is reused.
    return Invokers(
        analysis=ModelSelectingInvoker(
            analysis_client,
            cache,
            preferred_model=vertex_config.preferred_model,
            default_model=vertex_config.default_model,
        ),
        verify=ModelSelectingInvoker(
            verify_client,
            cache,
            preferred_model=vertex_config.preferred_model,
            default_model=vertex_config.default_model,
        ),
    )
