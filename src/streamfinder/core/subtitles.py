"""
subtitles.py
============
Estrutura de legenda e fallback de extração via DOM.

Alguns players declaram as legendas direto no HTML (<track> ou atributos
data-*) e só as baixam quando o usuário ativa a faixa. O fallback lê esses
endereços do documento renderizado e os junta às legendas vistas na rede.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from playwright.async_api import Page

from streamfinder.core.errors import attempt

logger = logging.getLogger(__name__)


@dataclass
class Subtitle:
    """Faixa de legenda. Apenas ``url`` é preenchida pela captura de rede."""
    url: str
    label: Optional[str] = None
    lang: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"url": self.url}
        if self.label is not None:
            data["label"] = self.label
        if self.lang is not None:
            data["lang"] = self.lang
        return data


DOM_SUBTITLES_SCRIPT = """() => {
    const urls = new Set();
    document.querySelectorAll("track[kind='subtitles'][src]").forEach((t) => {
        if (t.src) urls.add(t.src);
    });
    document.querySelectorAll('[data-track],[data-subtitle]').forEach((el) => {
        const u = (el.getAttribute('data-track') || el.getAttribute('data-subtitle') || '').trim();
        if (u) urls.add(u);
    });
    return Array.from(urls);
}"""


async def collect_dom_subtitles(page: Page) -> List[str]:
    """
    Lê do documento principal as URLs de legenda declaradas no HTML.

    - <track kind="subtitles" src="..."> (src já resolvido pelo navegador)
    - qualquer elemento com data-track ou data-subtitle não vazio

    Retorna uma lista vazia se a avaliação falhar.
    """
    result = await attempt(page.evaluate(DOM_SUBTITLES_SCRIPT), "legendas do DOM")
    if not result or not isinstance(result.value, list):
        return []
    urls = [u for u in result.value if isinstance(u, str) and u]
    if urls:
        logger.info("%d legenda(s) encontrada(s) no DOM", len(urls))
    return urls
