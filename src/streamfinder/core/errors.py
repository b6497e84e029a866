"""
errors.py
=========
Taxonomia de erros do streamfinder.

Dois níveis:
- Fatais (propagados): falha ao iniciar o navegador ou ao navegar até a página.
- Recuperáveis (descartados): cliques, buscas de seletor, scripts injetados,
  abort/continue de requisições e inspeção de respostas. Esses passam pelo
  helper ``attempt``, que devolve um ``Attempt`` em vez de levantar exceção.

Terminar sem nenhuma URL encontrada não é erro.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Optional

logger = logging.getLogger(__name__)


class StreamFinderError(Exception):
    """Erro base do streamfinder."""


class BrowserLaunchError(StreamFinderError):
    """O navegador não pôde ser iniciado (ou conectado)."""


class NavigationError(StreamFinderError):
    """A página alvo não chegou ao DOMContentLoaded dentro do tempo limite."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Falha ao navegar para {url}: {reason}")
        self.url = url
        self.reason = reason


class InvalidURLError(StreamFinderError, ValueError):
    """URL alvo inválida ou insegura."""


@dataclass(frozen=True)
class Attempt:
    """Resultado de uma operação de melhor esforço."""
    ok: bool
    value: Any = None
    error: Optional[BaseException] = None

    def __bool__(self) -> bool:
        return self.ok


async def attempt(awaitable: Awaitable, description: str) -> Attempt:
    """
    Aguarda ``awaitable`` e descarta qualquer falha.

    Parâmetros
    ----------
    awaitable : Awaitable
        Operação a executar (ex: ``element.click()``).
    description : str
        Texto curto usado no log de debug quando a operação falha.

    Retorna
    -------
    Attempt
        ``ok=True`` com o valor retornado, ou ``ok=False`` com a exceção.
    """
    try:
        value = await awaitable
    except Exception as e:
        logger.debug("Ignorando falha em %s: %s", description, e)
        return Attempt(ok=False, error=e)
    return Attempt(ok=True, value=value)
