"""
Errors
======

Exception hierarchy for a conversational turn.

    KBAgentError
    ├── NotFoundError             thread, agent or knowledge base missing
    ├── ConfigurationError        no agent resolvable, unknown provider
    ├── ParameterValidationError  tool payload fails parsing or schema
    ├── UpstreamError             search, embeddings, HTTP tool or model failure
    └── PersistenceError          message append or store save failed

Only the tool-invocation boundary (``Tool.call``) turns these into strings.
Everywhere else they propagate to the caller of ``ThreadRunner.run_turn``.
"""


class KBAgentError(Exception):
    """Base class for all errors raised by kbagent."""


class NotFoundError(KBAgentError):
    """A thread, agent or knowledge base does not exist."""


class ConfigurationError(KBAgentError):
    """The stored configuration cannot produce a runnable turn."""


class ParameterValidationError(KBAgentError):
    """A tool parameter payload is malformed or violates its schema."""


class UpstreamError(KBAgentError):
    """An external collaborator (search, HTTP tool, model) failed."""


class PersistenceError(KBAgentError):
    """The thread store could not record messages."""
