from abc import ABC, abstractmethod
from typing import Sequence

from playwright.async_api import Page

from streamfinder.core.interaction import (
    CLOSE_SELECTORS,
    PLAY_SELECTORS,
    try_interact_all_frames,
)


class BasePlugin(ABC):
    @property
    @abstractmethod
    def name(self) -> str:
        """Nome do plugin"""
        pass

    @abstractmethod
    async def interact(self, page: Page) -> None:
        """Uma rodada de interação (ex: fechar modais e clicar no play)"""
        pass


class GenericPlugin(BasePlugin):
    # Tabelas de seletores consumidas por try_interact_all_frames.
    # Subclasses entregues ao StreamExtractor podem sobrescrevê-las.
    close_selectors: Sequence[str] = CLOSE_SELECTORS
    play_selectors: Sequence[str] = PLAY_SELECTORS

    @property
    def name(self) -> str:
        return "Generic Extractor"

    async def interact(self, page: Page) -> None:
        await try_interact_all_frames(
            page,
            close_selectors=self.close_selectors,
            play_selectors=self.play_selectors,
        )
