"""Generated project files (compose, Dockerfile, CI, .env, justfile, ...)."""
from devsetup.generators.artifacts import Artifact, ArtifactGenerator

__all__ = ["Artifact", "ArtifactGenerator"]
