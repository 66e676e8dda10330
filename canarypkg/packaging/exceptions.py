# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Exceptions raised by the packaging and publishing pipeline.

Malformed recipes are configuration errors and live in
canarypkg.config.exceptions. The ones here are about what the user asked
for (an unknown distro, a bad version) or about a single unit that
failed at run time.
"""

from canarypkg.packaging.models import BuildFailure, PublishFailure


class PackagingError(Exception):
    """Base for all packaging errors."""


class UnknownRecipeError(PackagingError):
    """Raised when a distro is requested that no recipe declares."""


class InvalidVersionError(PackagingError):
    """Raised when a version string is empty or unsafe to embed in a filename."""


class BuildError(PackagingError):
    """One build unit failed. Carries the full failure record for reporting."""

    def __init__(self, failure: BuildFailure) -> None:
        super().__init__(
            f"Build failed for {failure.distro}/{failure.release}/{failure.arch}: {failure.reason}"
        )
        self.failure = failure


class PublishError(PackagingError):
    """One push failed. Carries the full failure record for reporting."""

    def __init__(self, failure: PublishFailure) -> None:
        super().__init__(
            f"Publish failed for {failure.distro}/{failure.release} ({failure.path}): {failure.reason}"
        )
        self.failure = failure
