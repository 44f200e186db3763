"""Adapters for the command-line tools the pipeline drives."""

from hexguard.clients.git import GitClient
from hexguard.clients.github import GitHubClient
from hexguard.clients.mix import MixClient
from hexguard.clients.opencode import DockerProfile, Mount, OpencodeClient

__all__ = [
    "DockerProfile",
    "GitClient",
    "GitHubClient",
    "MixClient",
    "Mount",
    "OpencodeClient",
]
