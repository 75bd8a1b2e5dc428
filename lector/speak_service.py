"""
Speak pipeline: extraction, normalization and dispatch to the engine.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from lector.config import parse_speed
from lector.extraction import DocumentContext, RegionExtractor
from lector.process_controller import ProcessController, ProcessHandle
from lector.text_normalization import clean_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpeechRequest:
    """Text ready for the engine and the speed to speak it at."""

    text: str
    speed: int | None = None

    def __post_init__(self):
        if self.speed is not None:
            parse_speed(self.speed)


class SpeakService:
    """Turn a speak request into a running speech process.

    Sources are either a plain string, spoken as is, or a DocumentContext
    whose text is selected by the RegionExtractor according to its mode.
    All errors from extraction and from the controller propagate unchanged.
    """

    def __init__(
        self,
        controller: ProcessController,
        extractor: RegionExtractor | None = None,
        normalizer: Callable[[str], str] = clean_text,
    ):
        self.controller = controller
        self.extractor = extractor if extractor is not None else RegionExtractor()
        self.normalizer = normalizer

    def _resolve_text(self, source: str | DocumentContext, force_region: bool) -> str:
        if isinstance(source, DocumentContext):
            return self.extractor.extract(source.mode, source, force_region=force_region)
        return source

    def speak(
        self,
        source: str | DocumentContext,
        speed: int | None = None,
        force_region: bool = False,
    ) -> ProcessHandle:
        """
        Speak a string or the relevant part of a document.

        Args:
            source: Raw text, or a document context to extract text from
            speed: Engine speed (default: the controller's default)
            force_region: Speak the context's active region whatever its mode

        Returns:
            Handle of the started speech process

        Raises:
            UnsupportedContextError: If the context mode has no strategy
            StructuralMismatchError: If the document lacks an expected landmark
            NoActiveSelectionError: If a region is required but none is active
            SpawnRefusedError: If a live process may not be replaced
            EngineStartError: If the engine cannot be started
            InvalidSpeedError: If speed is not a positive integer
        """
        raw = self._resolve_text(source, force_region)
        request = SpeechRequest(text=self.normalizer(raw), speed=speed)
        logger.debug("Speaking %d characters", len(request.text))
        return self.controller.spawn(request.text, request.speed)

    def speak_region(self, context: DocumentContext, speed: int | None = None) -> ProcessHandle:
        """Speak the active region of a context, ignoring its mode."""
        return self.speak(context, speed=speed, force_region=True)
