"""
browser_session.py
==================
Módulo responsável por preparar uma sessão isolada de navegador para a
extração: lançamento do Chromium (ou conexão a um endpoint remoto via CDP),
criação do contexto com viewport e user-agent fixos, tempos limite e abertura
da página.

A sessão não navega: a página é devolvida pronta para o coletor de tráfego
ser anexado e a navegação começar.

Navegadores suportados: Chromium embutido do Playwright, Chrome e Edge.
"""

import logging
import os
import dataclasses
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from playwright.async_api import Browser, BrowserContext, Page, Playwright

from streamfinder.core.errors import BrowserLaunchError, attempt

logger = logging.getLogger(__name__)


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)

# Flags fixas de lançamento: sandbox desativado, autoplay sem gesto do usuário,
# áudio mudo e erros de certificado ignorados.
BASE_LAUNCH_ARGS: Tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--autoplay-policy=no-user-gesture-required",
    "--mute-audio",
    "--ignore-certificate-errors",
    "--allow-running-insecure-content",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
)

# Navegador -> canal do Playwright
CHANNELS: Dict[str, Optional[str]] = {
    "chromium": None,   # Usa o Chromium embutido do Playwright
    "chrome": "chrome",
    "edge": "msedge",
}

WEBDRIVER_MASK_SCRIPT = (
    "Object.defineProperty(navigator, 'webdriver', {get: () => undefined})"
)

_FALSE_VALUES = ("0", "false", "no", "off")


# ---------------------------------------------------------------------------
# Configuração imutável da sessão
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SessionConfig:
    """Parâmetros fixados no início de cada sessão."""
    headless: bool = True
    viewport_width: int = 1366
    viewport_height: int = 768
    device_scale_factor: int = 1
    user_agent: str = DEFAULT_USER_AGENT
    navigation_timeout: int = 30000   # ms
    command_timeout: int = 30000      # ms
    block_heavy_resources: bool = True
    browser: str = "chromium"         # "chromium" | "chrome" | "edge"
    executable_path: Optional[str] = None
    ws_endpoint: Optional[str] = None
    extra_args: Tuple[str, ...] = field(default_factory=tuple)

    def replace(self, **changes: Any) -> "SessionConfig":
        """Retorna uma cópia com os campos alterados."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SessionConfig":
        """
        Constrói a configuração a partir de variáveis de ambiente.

        Variáveis reconhecidas
        ----------------------
        STREAMFINDER_HEADLESS         "0", "false", "no" ou "off" desativa
        STREAMFINDER_BROWSER          chromium | chrome | edge
        STREAMFINDER_EXECUTABLE_PATH  caminho para o executável do navegador
        STREAMFINDER_WS_ENDPOINT      endpoint CDP de um navegador já rodando
        STREAMFINDER_BLOCK_RESOURCES  "0", "false", "no" ou "off" desativa
        STREAMFINDER_NAV_TIMEOUT      tempo limite de navegação (ms)

        Valores ausentes ou malformados mantêm o padrão.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        changes: Dict[str, Any] = {}

        headless = env.get("STREAMFINDER_HEADLESS")
        if headless:
            changes["headless"] = headless.strip().lower() not in _FALSE_VALUES

        block = env.get("STREAMFINDER_BLOCK_RESOURCES")
        if block:
            changes["block_heavy_resources"] = block.strip().lower() not in _FALSE_VALUES

        browser = (env.get("STREAMFINDER_BROWSER") or "").strip().lower()
        if browser in CHANNELS:
            changes["browser"] = browser
        elif browser:
            logger.warning("Navegador desconhecido '%s', usando %s.", browser, defaults.browser)

        executable = (env.get("STREAMFINDER_EXECUTABLE_PATH") or "").strip()
        if executable:
            changes["executable_path"] = executable

        endpoint = (env.get("STREAMFINDER_WS_ENDPOINT") or "").strip()
        if endpoint:
            changes["ws_endpoint"] = endpoint

        timeout = (env.get("STREAMFINDER_NAV_TIMEOUT") or "").strip()
        if timeout:
            try:
                changes["navigation_timeout"] = int(timeout)
            except ValueError:
                logger.warning("STREAMFINDER_NAV_TIMEOUT inválido: %r", timeout)

        return defaults.replace(**changes)


# ---------------------------------------------------------------------------
# Argumentos de lançamento
# ---------------------------------------------------------------------------

def build_launch_args(config: SessionConfig) -> List[str]:
    """Flags de linha de comando passadas ao Chromium."""
    args = list(BASE_LAUNCH_ARGS)
    for extra in config.extra_args:
        if extra not in args:
            args.append(extra)
    return args


def build_launch_kwargs(config: SessionConfig) -> Dict[str, Any]:
    """
    Constrói os kwargs de ``playwright.chromium.launch``.

    Um ``executable_path`` explícito tem precedência sobre o canal do
    navegador escolhido.
    """
    kwargs: Dict[str, Any] = {
        "headless": config.headless,
        "args": build_launch_args(config),
    }
    if config.executable_path:
        kwargs["executable_path"] = config.executable_path
    else:
        channel = CHANNELS.get(config.browser)
        if channel:
            kwargs["channel"] = channel
    return kwargs


def build_context_kwargs(config: SessionConfig) -> Dict[str, Any]:
    """Kwargs de ``browser.new_context``."""
    return {
        "viewport": {"width": config.viewport_width, "height": config.viewport_height},
        "device_scale_factor": config.device_scale_factor,
        "user_agent": config.user_agent,
        "ignore_https_errors": True,
    }


# ---------------------------------------------------------------------------
# Sessão
# ---------------------------------------------------------------------------

class BrowserSession:
    """Navegador, contexto e página pertencentes a uma única extração."""

    def __init__(self, browser: Browser, context: BrowserContext, page: Page):
        self.browser = browser
        self.context = context
        self.page = page

    async def close(self) -> None:
        """Fecha contexto e navegador. Falhas são ignoradas."""
        await attempt(self.context.close(), "fechar contexto")
        await attempt(self.browser.close(), "fechar navegador")


async def _launch_browser(playwright: Playwright, config: SessionConfig) -> Browser:
    if config.ws_endpoint:
        logger.info("Conectando ao navegador remoto em %s", config.ws_endpoint)
        return await playwright.chromium.connect_over_cdp(
            config.ws_endpoint, timeout=config.command_timeout,
        )
    return await playwright.chromium.launch(**build_launch_kwargs(config))


async def open_session(playwright: Playwright, config: SessionConfig) -> BrowserSession:
    """
    Lança o navegador e prepara contexto e página para a navegação.

    Parâmetros
    ----------
    playwright : Playwright
        Instância obtida de ``async_playwright()``.
    config : SessionConfig
        Parâmetros da sessão.

    Retorna
    -------
    BrowserSession

    Levanta
    -------
    BrowserLaunchError
        Se o navegador não puder ser iniciado ou o contexto não puder ser
        criado. O que já tiver sido criado é liberado antes.
    """
    try:
        browser = await _launch_browser(playwright, config)
    except Exception as e:
        raise BrowserLaunchError(f"Não foi possível iniciar o navegador: {e}") from e

    try:
        context = await browser.new_context(**build_context_kwargs(config))
        context.set_default_navigation_timeout(config.navigation_timeout)
        context.set_default_timeout(config.command_timeout)
        await context.add_init_script(WEBDRIVER_MASK_SCRIPT)
        page = await context.new_page()
    except Exception as e:
        await attempt(browser.close(), "fechar navegador")
        raise BrowserLaunchError(f"Não foi possível criar o contexto: {e}") from e

    return BrowserSession(browser, context, page)
