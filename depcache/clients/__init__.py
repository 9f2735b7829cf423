"""Collaborator clients.

Protocols for the coordinators' external collaborators and the concrete
adapters used at runtime: file hashing, a local artifact store, and the
GitHub Actions state/output file commands.
"""

from depcache.clients.artifact_store import LocalArtifactStore
from depcache.clients.github_actions import (
    GitHubActionsOutputWriter,
    GitHubActionsStateStore,
    JsonFileOutputWriter,
    JsonFileStateStore,
    build_output_writer,
    build_state_store,
)
from depcache.clients.hashing import GlobFileHasher
from depcache.clients.protocols import (
    ArtifactStoreProtocol,
    FileHasherProtocol,
    OutputWriterProtocol,
    StateStoreProtocol,
)


__all__ = [
    "ArtifactStoreProtocol",
    "FileHasherProtocol",
    "GitHubActionsOutputWriter",
    "GitHubActionsStateStore",
    "GlobFileHasher",
    "JsonFileOutputWriter",
    "JsonFileStateStore",
    "LocalArtifactStore",
    "OutputWriterProtocol",
    "StateStoreProtocol",
    "build_output_writer",
    "build_state_store",
]
