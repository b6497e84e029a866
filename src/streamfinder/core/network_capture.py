"""
network_capture.py
==================
Módulo responsável por interceptar o tráfego da página e separar URLs de
manifestos HLS (.m3u8) e de legendas (.vtt, .srt).

Funcionalidades:
- Classificação de URLs pelo sufixo do caminho (query string e fragmento
  são ignorados).
- Política de bloqueio de recursos pesados (imagens, CSS, fontes, mídia).
- Coleta em conjuntos somente-inclusão, na ordem de descoberta.

A classificação acontece sempre antes da decisão de bloquear ou liberar a
requisição, então um manifesto servido com tipo "media" continua sendo
registrado mesmo sendo abortado.
"""

import logging
import re
import urllib.parse
from typing import Iterator, List, Set

from playwright.async_api import Page, Response, Route

from streamfinder.core.errors import attempt

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constantes de classificação
# ---------------------------------------------------------------------------

MANIFEST_PATTERN = re.compile(r"\.m3u8$", re.IGNORECASE)
SUBTITLE_PATTERN = re.compile(r"\.(vtt|srt)$", re.IGNORECASE)

# Tipos de recurso do Playwright que podem ser abortados sem perder tráfego
# classificável.
HEAVY_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font", "media"})


# ---------------------------------------------------------------------------
# Classificador de URLs e política de recursos
# ---------------------------------------------------------------------------

def _url_path(url: str) -> str:
    """Componente de caminho da URL, ou "" se ela não puder ser separada."""
    if not isinstance(url, str):
        return ""
    try:
        return urllib.parse.urlsplit(url).path
    except ValueError:
        return ""


def is_manifest_url(url: str) -> bool:
    """Retorna True se o caminho da URL terminar em .m3u8."""
    return MANIFEST_PATTERN.search(_url_path(url)) is not None


def is_subtitle_url(url: str) -> bool:
    """Retorna True se o caminho da URL terminar em .vtt ou .srt."""
    return SUBTITLE_PATTERN.search(_url_path(url)) is not None


def is_heavy_resource(resource_type: str) -> bool:
    """Retorna True para imagens, folhas de estilo, fontes e corpos de mídia."""
    return resource_type in HEAVY_RESOURCE_TYPES


# ---------------------------------------------------------------------------
# Conjunto ordenado e somente-inclusão
# ---------------------------------------------------------------------------

class DiscoverySet:
    """
    Conjunto de URLs descobertas, deduplicado por igualdade exata de string
    (query string incluída) e exposto na ordem de descoberta.

    Não há operação de remoção: o tamanho só cresce durante uma extração.
    """

    def __init__(self):
        self._items: List[str] = []
        self._seen: Set[str] = set()

    def add(self, url: str) -> bool:
        """Insere a URL. Retorna True se ela ainda não estava no conjunto."""
        if url in self._seen:
            return False
        self._seen.add(url)
        self._items.append(url)
        return True

    def to_list(self) -> List[str]:
        return list(self._items)

    def __contains__(self, url: object) -> bool:
        return url in self._seen

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"DiscoverySet({self._items!r})"


# ---------------------------------------------------------------------------
# Classe principal: TrafficCollector
# ---------------------------------------------------------------------------

class TrafficCollector:
    """
    Coletor de manifestos e legendas a partir do tráfego de uma página.

    Uso típico
    ----------
    >>> collector = TrafficCollector()
    >>> await collector.attach(page)
    >>> # ... navegar e interagir com a página ...
    >>> collector.manifest_urls()
    """

    def __init__(self, block_heavy_resources: bool = True):
        """
        Parâmetros
        ----------
        block_heavy_resources : bool
            Se True (padrão), aborta requisições de imagens, CSS, fontes e
            mídia depois de classificá-las.
        """
        self.block_heavy_resources = block_heavy_resources
        self.manifests = DiscoverySet()
        self.subtitles = DiscoverySet()

    async def attach(self, page: Page) -> None:
        """
        Ativa a interceptação de requisições e registra os handlers na página.
        Deve ser chamado uma única vez, antes da navegação.
        """
        await page.route("**/*", self.handle_route)
        page.on("response", self.handle_response)

    def record(self, url: str) -> None:
        """Classifica a URL e a adiciona ao(s) conjunto(s) correspondente(s)."""
        if is_manifest_url(url) and self.manifests.add(url):
            logger.info("Manifesto encontrado: %s", url)
        if is_subtitle_url(url) and self.subtitles.add(url):
            logger.info("Legenda encontrada: %s", url)

    async def handle_route(self, route: Route) -> None:
        """
        Handler de interceptação (``page.route``).

        A URL é registrada antes de decidir entre abortar e continuar.
        """
        request = route.request
        self.record(request.url)

        if self.block_heavy_resources and is_heavy_resource(request.resource_type):
            await attempt(route.abort(), f"abort {request.url}")
        else:
            await attempt(route.continue_(), f"continue {request.url}")

    def handle_response(self, response: Response) -> None:
        """
        Callback para o evento 'response'.

        Registra a URL da resposta e a da requisição de origem, que podem
        diferir após redirecionamentos.
        """
        try:
            self.record(response.url)
            self.record(response.request.url)
        except Exception as e:
            logger.debug("Ignorando falha ao inspecionar resposta: %s", e)

    def has_manifests(self) -> bool:
        """Retorna True se pelo menos um manifesto foi observado."""
        return len(self.manifests) > 0

    def manifest_urls(self) -> List[str]:
        return self.manifests.to_list()

    def subtitle_urls(self) -> List[str]:
        return self.subtitles.to_list()

    def __len__(self) -> int:
        return len(self.manifests)

    def __repr__(self) -> str:
        return (
            f"TrafficCollector(manifests={len(self.manifests)}, "
            f"subtitles={len(self.subtitles)})"
        )
