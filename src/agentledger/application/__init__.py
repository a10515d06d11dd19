"""
Application layer for the agent ledger.

Contains the write side (execution engine), the read side (projector,
knowledge queries, pattern matcher) and the coordinated agent built on both.
"""

from agentledger.application.agent import CoordinatedAgent
from agentledger.application.execution_engine import ExecutionEngine
from agentledger.application.knowledge import KnowledgeQueryService
from agentledger.application.pattern_matcher import PatternMatcher
from agentledger.application.projector import StateProjector
from agentledger.application.read_models import RecentExecutionsView

__all__ = [
    "CoordinatedAgent",
    "ExecutionEngine",
    "KnowledgeQueryService",
    "PatternMatcher",
    "RecentExecutionsView",
    "StateProjector",
]
