"""Failure types raised along the build pipeline."""


class BuildError(RuntimeError):
    """Base class for every failure the pipeline knows how to report."""


class AuthError(BuildError):
    """The shared build secret did not match."""


class GenerationError(BuildError):
    """The generation backend failed or answered with an unusable response."""


class PublishError(BuildError):
    """Repository creation or one of the required file writes failed."""


class HostingActivationError(BuildError):
    """GitHub Pages could not be enabled. Never fatal to a build."""
