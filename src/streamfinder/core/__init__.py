"""
streamfinder.core
=================
Módulos principais do streamfinder.

- extractor: Máquina de estados da descoberta e pontos de entrada.
- network_capture: Classificação de URLs e coleta de tráfego de rede.
- interaction: Heurísticas de clique e autoplay em todos os frames.
- browser_session: Configuração e lançamento da sessão de navegador.
- subtitles: Estrutura de legenda e fallback via DOM.
- errors: Erros fatais e helper de operações de melhor esforço.
"""

from streamfinder.core.browser_session import (
    BrowserSession,
    SessionConfig,
    open_session,
)
from streamfinder.core.errors import (
    Attempt,
    BrowserLaunchError,
    InvalidURLError,
    NavigationError,
    StreamFinderError,
    attempt,
)
from streamfinder.core.extractor import (
    DiscoveryStateMachine,
    DiscoveryTimings,
    ScrapeResult,
    Stage,
    StreamExtractor,
    scrape_provider,
    scrape_provider_with_subtitles,
)
from streamfinder.core.network_capture import (
    DiscoverySet,
    TrafficCollector,
    is_heavy_resource,
    is_manifest_url,
    is_subtitle_url,
)
from streamfinder.core.subtitles import Subtitle, collect_dom_subtitles

__all__ = [
    "BrowserSession",
    "SessionConfig",
    "open_session",
    "Attempt",
    "BrowserLaunchError",
    "InvalidURLError",
    "NavigationError",
    "StreamFinderError",
    "attempt",
    "DiscoveryStateMachine",
    "DiscoveryTimings",
    "ScrapeResult",
    "Stage",
    "StreamExtractor",
    "scrape_provider",
    "scrape_provider_with_subtitles",
    "DiscoverySet",
    "TrafficCollector",
    "is_heavy_resource",
    "is_manifest_url",
    "is_subtitle_url",
    "Subtitle",
    "collect_dom_subtitles",
]
