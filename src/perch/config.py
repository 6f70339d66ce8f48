"""Router configuration.

RouterConfig is a frozen dataclass — immutable after creation, shared by a
router and every child router derived from it.
"""

from dataclasses import dataclass
from typing import Any

from perch.errors import ConfigurationError

# API-description dialects whose ``date`` type differs
RAML_VERSIONS = ("0.8", "1.0")


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(case_sensitive=True, strict=True)
        router = Router(config)
    """

    # Matching
    case_sensitive: bool = False  # Literal template text compares case-insensitively
    strict: bool = False  # Trailing slash is significant when True

    # Parameters declared up front, inherited by every registration
    parameters: Any = None

    # ``date`` means RFC 2616 under 0.8, ``date-only`` under 1.0
    raml_version: str = "1.0"

    def __post_init__(self) -> None:
        if self.raml_version not in RAML_VERSIONS:
            allowed = ", ".join(RAML_VERSIONS)
            msg = f"Unsupported raml_version {self.raml_version!r}. Expected one of: {allowed}"
            raise ConfigurationError(msg)
