"""
KBAgent - Thread-Based Agent with Knowledge Base Tools
======================================================

Runs conversational turns on stored threads. Each turn is answered by a
configured agent that can search its knowledge bases and call declared
HTTP tools.

This package provides:
- Agent system: ThreadRunner runs a turn end to end
- Tools: knowledge base search tools and declared HTTP tools
- Knowledge bases: embeddings and a local vector store
- Inference: OpenAI chat completions with a tool loop
- Thread store: threads, agents, tools and message logs
"""

__version__ = "1.0.0"
