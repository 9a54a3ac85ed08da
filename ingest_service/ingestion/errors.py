"""Error taxonomy for document ingestion.

Callers of the orchestrator only ever see "no text"; everything below is raised
by adapters and remote clients and downgraded to an empty attempt by
``run_attempt``.
"""

from __future__ import annotations


class IngestionError(Exception):
    """Base class for ingestion failures."""


class InvalidDocumentError(IngestionError):
    """The document could not be decoded or yielded no text."""


class JobTimeoutError(IngestionError, TimeoutError):
    """A remote recognition job exceeded its poll budget."""


class RemoteJobFailedError(IngestionError):
    """A remote recognition job was rejected or reported a terminal failure."""
