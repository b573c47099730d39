class DepthcrawlError(Exception):
    """Base error for depthcrawl domain exceptions."""


class ConfigError(DepthcrawlError):
    """Raised when settings cannot be parsed or are out of range."""


class ContentError(DepthcrawlError):
    """Raised when archetype/taunt content data is missing or malformed."""


class MapGenerationError(DepthcrawlError):
    """Raised when a generated floor has no walkable cell at all."""


class InvalidDirectionError(DepthcrawlError):
    """Raised when a direction is not one of the four cardinal unit steps."""
