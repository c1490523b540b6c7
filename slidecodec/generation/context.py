"""Per-invocation generation state and deterministic object ids."""

import logging
from typing import Optional

from slidecodec.config import Settings
from slidecodec.dsl.schema import DeckDocument
from slidecodec.errors import ElementIssue, IssueKind
from slidecodec.text.codec import TextStructureCodec
from slidecodec.theme.fonts import ThemeFonts
from slidecodec.theme.resolver import ColorResolver

logger = logging.getLogger(__name__)


class IdFactory:
    """Deterministic object ids: ``obj_s{slide}_e{index}[_{suffix}]``.

    ``index`` is the element's position after z-order sorting; nested group
    children extend it (``3_0``, ``3_1``).
    """

    def slide(self, slide_index: int) -> str:
        return f"obj_s{slide_index}_page"

    def element(self, slide_index: int, element_path: str, suffix: Optional[str] = None) -> str:
        object_id = f"obj_s{slide_index}_e{element_path}"
        if suffix:
            object_id += f"_{suffix}"
        return object_id


class GenerationContext:
    """Resolver, fonts, codec, ids and diagnostics for one generation call."""

    def __init__(self, document: DeckDocument, settings: Settings):
        self.document = document
        self.settings = settings
        theme = document.config.theme
        self.resolver = ColorResolver.from_theme_config(theme)
        self.fonts = ThemeFonts(theme, settings.default_font_family)
        self.codec = TextStructureCodec(self.resolver, fonts=self.fonts, settings=settings)
        self.ids = IdFactory()
        self.issues: list[ElementIssue] = []
        # Source object id -> generated id, per slide, for line connections
        self.id_map: dict[str, str] = {}

    def record(
        self,
        kind: IssueKind,
        slide_index: Optional[int],
        object_id: Optional[str],
        detail: str,
    ) -> None:
        logger.warning(f"{kind.value} on slide {slide_index} element {object_id}: {detail}")
        self.issues.append(
            ElementIssue(kind=kind, slide_index=slide_index, object_id=object_id, detail=detail)
        )

    def all_issues(self) -> list[ElementIssue]:
        return [*self.issues, *self.resolver.issues]
