"""
interaction.py
==============
Heurísticas para disparar a reprodução em páginas de vídeo desconhecidas.

Cada rodada de interação percorre todos os frames da página (players
embutidos costumam viver em iframes), tenta fechar sobreposições, clicar em
um controle de play visível e, por fim, força o autoplay dos elementos
<video> via script injetado.

As listas de seletores são tabelas ordenadas por prioridade, do mais
específico (controles nomeados de players, rótulos acessíveis) ao mais
genérico (qualquer botão). Toda falha individual é descartada.
"""

import logging
from typing import Optional, Sequence

from playwright.async_api import ElementHandle, Frame, Page

from streamfinder.core.errors import attempt

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tabelas de seletores (ordem = prioridade)
# ---------------------------------------------------------------------------

CLOSE_SELECTORS: Sequence[str] = (
    "[class*=close]",
    ".vjs-modal-dialog-close-button",     # Video.js
    ".jw-icon-close",                     # JW Player
    ".x-close,.btn-close",
    "[aria-label*=Close i]",
)

PLAY_SELECTORS: Sequence[str] = (
    "button[aria-label*=Play i]",
    ".vjs-big-play-button",               # Video.js
    "button.jw-icon.jw-icon-display",     # JW Player
    "button[title*=Play i]",
    "[class*=play]",
    "button, .btn, [role=button]",
)

# Atraso entre mousedown e mouseup, em ms
CLICK_DELAY = 50

# Espera máxima de cada clique, em ms
CLICK_TIMEOUT = 5000

AUTOPLAY_SCRIPT = """() => {
    const videos = Array.from(document.querySelectorAll('video'));
    for (const v of videos) {
        try {
            v.muted = true;
            v.playsInline = true;
            const p = v.play();
            if (p && p.catch) p.catch(() => {});
        } catch (e) {}
    }
    return videos.length;
}"""


# ---------------------------------------------------------------------------
# Operações por frame
# ---------------------------------------------------------------------------

async def _first_visible(frame: Frame, selector: str) -> Optional[ElementHandle]:
    """Primeiro elemento visível que casa com o seletor, ou None."""
    lookup = await attempt(frame.query_selector_all(selector), f"buscar '{selector}'")
    for element in lookup.value or []:
        visible = await attempt(element.is_visible(), f"visibilidade de '{selector}'")
        if visible.value:
            return element
    return None


async def try_click_selectors(
    frame: Frame,
    selectors: Sequence[str],
    click_delay: int = CLICK_DELAY,
    timeout: float = CLICK_TIMEOUT,
) -> bool:
    """
    Clica no primeiro elemento visível, seguindo a ordem dos seletores.

    Elementos ocultos são ignorados sem clique, então um seletor que só casa
    com elementos ocultos passa direto para o próximo.

    Parâmetros
    ----------
    frame : Frame
        Frame onde os seletores serão buscados.
    selectors : Sequence[str]
        Seletores em ordem de prioridade.
    click_delay : int
        Atraso do clique em ms, imitando um clique humano.
    timeout : float
        Tempo limite de cada clique em ms.

    Retorna
    -------
    bool
        True se algum elemento recebeu o clique.
    """
    for selector in selectors:
        element = await _first_visible(frame, selector)
        if element is None:
            continue

        clicked = await attempt(
            element.click(delay=click_delay, timeout=timeout),
            f"clicar em '{selector}'",
        )
        if clicked:
            logger.debug("Clique em '%s' (frame %s)", selector, frame.url)
            return True
    return False


async def try_close_overlays(
    frame: Frame,
    selectors: Sequence[str] = CLOSE_SELECTORS,
    timeout: float = CLICK_TIMEOUT,
) -> None:
    """Tenta fechar modais e sobreposições. O resultado é ignorado."""
    await try_click_selectors(frame, selectors, timeout=timeout)


async def try_autoplay(frame: Frame) -> None:
    """Força muted + playsInline + play() em todo <video> do frame."""
    result = await attempt(frame.evaluate(AUTOPLAY_SCRIPT), f"autoplay em {frame.url}")
    if result and result.value:
        logger.debug("Autoplay forçado em %s vídeo(s) (frame %s)", result.value, frame.url)


async def try_play(
    frame: Frame,
    selectors: Sequence[str] = PLAY_SELECTORS,
    timeout: float = CLICK_TIMEOUT,
) -> None:
    """Tenta clicar em um controle de play e, em seguida, força o autoplay."""
    await try_click_selectors(frame, selectors, timeout=timeout)
    await try_autoplay(frame)


# ---------------------------------------------------------------------------
# Rodada completa de interação
# ---------------------------------------------------------------------------

async def try_interact_all_frames(
    page: Page,
    close_selectors: Sequence[str] = CLOSE_SELECTORS,
    play_selectors: Sequence[str] = PLAY_SELECTORS,
    timeout: float = CLICK_TIMEOUT,
) -> int:
    """
    Executa uma rodada de interação em todos os frames atuais da página.

    A árvore de frames é lida no momento da chamada; frames criados durante a
    rodada só serão vistos na próxima chamada.

    Retorna
    -------
    int
        Quantidade de frames visitados.
    """
    frames = list(page.frames)
    visited = 0
    for frame in frames:
        if frame.is_detached():
            continue
        await try_close_overlays(frame, close_selectors, timeout=timeout)
        await try_play(frame, play_selectors, timeout=timeout)
        visited += 1
    logger.debug("Rodada de interação: %d de %d frame(s)", visited, len(frames))
    return visited
