"""
extractor.py
============
Módulo principal de descoberta de manifestos HLS (.m3u8) e legendas via
automação de navegador com Playwright.

A descoberta é uma máquina de estados com escalonamento progressivo:

    NAVIGATING -> PASSIVE_WAIT -> [SUBTITLE_SCAN] -> (DONE se achou)
    -> INTERACT_1 -> WAIT_1 -> (DONE se achou) -> INTERACT_2 -> POLL -> DONE

Primeiro espera-se passivamente (páginas com autoplay revelam o manifesto
sozinhas). Se nada aparecer, uma rodada de interação é feita em todos os
frames, seguida de outra espera. Por fim, uma segunda rodada (modais fechados
na primeira podem expor o botão de play) e uma verificação periódica com
prazo fixo. O tempo total fica limitado pela soma das esperas mais o tempo
limite de navegação.

Resultado vazio não é erro: significa que nenhum manifesto foi observado.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from streamfinder.core.browser_session import SessionConfig, open_session
from streamfinder.core.errors import NavigationError, attempt
from streamfinder.core.network_capture import TrafficCollector
from streamfinder.core.subtitles import Subtitle, collect_dom_subtitles
from streamfinder.plugins.generic.base import BasePlugin, GenericPlugin

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Estados e tempos
# ---------------------------------------------------------------------------

class Stage(Enum):
    NAVIGATING = "navigating"
    PASSIVE_WAIT = "passive_wait"
    SUBTITLE_SCAN = "subtitle_scan"
    INTERACT_1 = "interact_1"
    WAIT_1 = "wait_1"
    INTERACT_2 = "interact_2"
    POLL = "poll"
    DONE = "done"


@dataclass(frozen=True)
class DiscoveryTimings:
    """Esperas da descoberta, em milissegundos."""
    passive_wait: int = 6000
    click_wait: int = 8000
    poll_interval: int = 250
    poll_deadline: int = 5000

    @property
    def total_wait(self) -> int:
        """Soma das esperas fixas (sem contar navegação e interações)."""
        return self.passive_wait + self.click_wait + self.poll_deadline


@dataclass
class ScrapeResult:
    """Manifestos e legendas acumulados em uma extração."""
    urls: List[str] = field(default_factory=list)
    subtitles: List[Subtitle] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "urls": list(self.urls),
            "subtitles": [s.to_dict() for s in self.subtitles],
        }


# ---------------------------------------------------------------------------
# Máquina de estados
# ---------------------------------------------------------------------------

class DiscoveryStateMachine:
    """
    Coordena navegação, esperas, rodadas de interação e verificação periódica.

    Não conhece o navegador: recebe as ações como funções assíncronas, o que
    permite testá-la com relógio e ``sleep`` falsos.

    Parâmetros
    ----------
    found : Callable[[], bool]
        Guarda das transições: True quando algum manifesto já foi observado.
    navigate : Callable[[], Awaitable]
        Navegação inicial. Erros aqui são propagados.
    interact : Callable[[], Awaitable]
        Uma rodada de interação. Falhas são descartadas.
    scan_subtitles : Callable[[], Awaitable], opcional
        Fallback de legendas via DOM, executado após a espera passiva.
    timings : DiscoveryTimings, opcional
    sleep : Callable[[float], Awaitable]
        Função de espera em segundos (padrão: ``asyncio.sleep``).
    clock : Callable[[], float]
        Relógio monotônico em segundos (padrão: ``time.monotonic``).
    """

    def __init__(
        self,
        found: Callable[[], bool],
        navigate: Callable[[], Awaitable],
        interact: Callable[[], Awaitable],
        scan_subtitles: Optional[Callable[[], Awaitable]] = None,
        timings: Optional[DiscoveryTimings] = None,
        sleep: Callable[[float], Awaitable] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._found = found
        self._navigate = navigate
        self._interact = interact
        self._scan_subtitles = scan_subtitles
        self.timings = timings or DiscoveryTimings()
        self._sleep = sleep
        self._clock = clock

        self.stage = Stage.NAVIGATING
        self.trace: List[Stage] = []
        self.interaction_rounds = 0

        self._handlers = {
            Stage.NAVIGATING: self._on_navigating,
            Stage.PASSIVE_WAIT: self._on_passive_wait,
            Stage.SUBTITLE_SCAN: self._on_subtitle_scan,
            Stage.INTERACT_1: self._on_interact,
            Stage.WAIT_1: self._on_wait_1,
            Stage.INTERACT_2: self._on_interact,
            Stage.POLL: self._on_poll,
        }

    async def run(self) -> List[Stage]:
        """Executa até DONE e retorna a sequência de estados visitados."""
        while self.stage is not Stage.DONE:
            self.trace.append(self.stage)
            logger.debug("Estado: %s", self.stage.value)
            self.stage = await self._handlers[self.stage]()
        self.trace.append(Stage.DONE)
        return list(self.trace)

    def _unless_found(self, next_stage: Stage) -> Stage:
        return Stage.DONE if self._found() else next_stage

    async def _wait(self, ms: int) -> None:
        await self._sleep(ms / 1000)

    async def _on_navigating(self) -> Stage:
        await self._navigate()
        return Stage.PASSIVE_WAIT

    async def _on_passive_wait(self) -> Stage:
        await self._wait(self.timings.passive_wait)
        if self._scan_subtitles is not None:
            return Stage.SUBTITLE_SCAN
        return self._unless_found(Stage.INTERACT_1)

    async def _on_subtitle_scan(self) -> Stage:
        await attempt(self._scan_subtitles(), "fallback de legendas")
        return self._unless_found(Stage.INTERACT_1)

    async def _on_interact(self) -> Stage:
        self.interaction_rounds += 1
        logger.info("Rodada de interação %d", self.interaction_rounds)
        await attempt(self._interact(), "rodada de interação")
        return Stage.WAIT_1 if self.stage is Stage.INTERACT_1 else Stage.POLL

    async def _on_wait_1(self) -> Stage:
        await self._wait(self.timings.click_wait)
        return self._unless_found(Stage.INTERACT_2)

    async def _on_poll(self) -> Stage:
        deadline = self._clock() + self.timings.poll_deadline / 1000
        while self._clock() < deadline:
            if self._found():
                break
            await self._wait(self.timings.poll_interval)
        return Stage.DONE


# ---------------------------------------------------------------------------
# Classe principal: StreamExtractor
# ---------------------------------------------------------------------------

class StreamExtractor:
    """
    Extrator de manifestos HLS e legendas de uma página de vídeo.

    Cada chamada a ``extract`` abre uma sessão de navegador própria e a fecha
    ao final, com ou sem sucesso.

    Parâmetros
    ----------
    config : SessionConfig, opcional
        Configuração da sessão. Se None, é lida do ambiente.
    timings : DiscoveryTimings, opcional
        Esperas da descoberta.
    plugin : BasePlugin, opcional
        Executa as rodadas de interação. Se None, usa o GenericPlugin.
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        timings: Optional[DiscoveryTimings] = None,
        plugin: Optional[BasePlugin] = None,
    ):
        self.config = config or SessionConfig.from_env()
        self.timings = timings or DiscoveryTimings()
        self.plugin = plugin or GenericPlugin()
        self.last_trace: List[Stage] = []

    async def _navigate(self, page: Page, url: str) -> None:
        logger.info("Navegando para: %s", url)
        try:
            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.navigation_timeout,
            )
        except PlaywrightError as e:
            raise NavigationError(url, str(e)) from e

    async def extract(self, url: str, with_subtitles: bool = False) -> ScrapeResult:
        """
        Extrai manifestos (e, opcionalmente, legendas) de uma página.

        Parâmetros
        ----------
        url : str
            URL da página de vídeo.
        with_subtitles : bool
            Se True, executa também o fallback de legendas via DOM.

        Retorna
        -------
        ScrapeResult

        Levanta
        -------
        BrowserLaunchError
            Se o navegador não puder ser iniciado.
        NavigationError
            Se a página não carregar dentro do tempo limite.
        """
        collector = TrafficCollector(
            block_heavy_resources=self.config.block_heavy_resources,
        )
        plugin = self.plugin
        logger.debug("Usando plugin: %s", plugin.name)

        async with async_playwright() as p:
            session = await open_session(p, self.config)
            try:
                page = session.page
                await collector.attach(page)

                async def scan_subtitles() -> None:
                    for sub_url in await collect_dom_subtitles(page):
                        collector.subtitles.add(sub_url)

                machine = DiscoveryStateMachine(
                    found=collector.has_manifests,
                    navigate=lambda: self._navigate(page, url),
                    interact=lambda: plugin.interact(page),
                    scan_subtitles=scan_subtitles if with_subtitles else None,
                    timings=self.timings,
                )
                self.last_trace = await machine.run()
            finally:
                await session.close()

        result = ScrapeResult(
            urls=collector.manifest_urls(),
            subtitles=[Subtitle(url=u) for u in collector.subtitle_urls()],
        )
        logger.info(
            "%d manifesto(s) e %d legenda(s) em %s",
            len(result.urls), len(result.subtitles), url,
        )
        return result


# ---------------------------------------------------------------------------
# Pontos de entrada
# ---------------------------------------------------------------------------

async def scrape_provider(target_url: str) -> List[str]:
    """Retorna as URLs de manifesto observadas na página (possivelmente vazia)."""
    result = await StreamExtractor().extract(target_url)
    return result.urls


async def scrape_provider_with_subtitles(target_url: str) -> ScrapeResult:
    """Retorna manifestos e legendas (rede + DOM) observados na página."""
    return await StreamExtractor().extract(target_url, with_subtitles=True)
