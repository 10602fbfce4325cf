"""
Agent System
============

Runs conversational turns on stored threads. For each turn the agent:
1. Resolves which configured agent answers
2. Assembles the context window from the thread's history
3. Builds the agent's tools
4. Runs the model (with tool calls as needed)
5. Records every message of the turn in the thread

This module provides:
- ThreadRunner: Runs a turn (the entry point)
- ContextAssembler: Resolves the agent and builds the context window
- ToolExecutor: Dispatches the model's tool calls
"""

from kbagent.agent.context import AssembledContext, ContextAssembler, build_context_window
from kbagent.agent.core import ThreadRunner, TurnLimits, TurnObserver
from kbagent.agent.tools_executor import ToolExecutor

__all__ = [
    "ThreadRunner",
    "TurnLimits",
    "TurnObserver",
    "ContextAssembler",
    "AssembledContext",
    "build_context_window",
    "ToolExecutor",
]
