"""streamfinder: descobre manifestos HLS e legendas em páginas de vídeo."""

from streamfinder.core import (
    ScrapeResult,
    SessionConfig,
    StreamExtractor,
    Subtitle,
    scrape_provider,
    scrape_provider_with_subtitles,
)

__version__ = "0.1.0"

__all__ = [
    "ScrapeResult",
    "SessionConfig",
    "StreamExtractor",
    "Subtitle",
    "scrape_provider",
    "scrape_provider_with_subtitles",
]
