"""Error taxonomy for prompt construction.

  PromptkitError
  ├── ValidationError          bad construction attributes (also a ValueError)
  ├── TemplateError
  │   ├── TemplateSyntaxError  engine cannot parse the template text
  │   └── TemplateRenderError  parsed fine, failed against the inputs
  ├── RollbackNotFoundError    Template history has no such version
  └── VersionNotFoundError     Prompt history has no such version

Operations with plain names raise these. The ``safe_*`` variants return
``(value, error)`` tuples instead.
"""

from typing import Any, Optional


class PromptkitError(Exception):
    """Base class for all promptkit errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(PromptkitError, ValueError):
    """Malformed construction attributes."""


class TemplateError(PromptkitError):
    """Raised by the templating engine."""


class TemplateSyntaxError(TemplateError):
    """The template text cannot be parsed."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        lineno: Optional[int] = None,
    ):
        super().__init__(message, details)
        self.lineno = lineno


class TemplateRenderError(TemplateError):
    """The template parsed but could not be rendered with the given inputs."""


class RollbackNotFoundError(PromptkitError, LookupError):
    """Requested template version is not in the version history."""

    def __init__(self, version: int, available: list[int]):
        super().__init__(
            f"Version {version} not found in history",
            details={"version": version, "available": available},
        )
        self.version = version


class VersionNotFoundError(PromptkitError, LookupError):
    """Requested prompt version is neither current nor in history."""

    def __init__(self, version: int, available: list[int]):
        super().__init__(
            f"Version {version} not found",
            details={"version": version, "available": available},
        )
        self.version = version
