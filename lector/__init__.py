"""
Lector - speak text through an external speech engine

Dispatches text to a command-line speech synthesizer (espeak by default),
replacing raw hyperlinks with a short spoken notice, and controls the
single speech process it starts.
"""

__version__ = "0.1.0"

from lector.config import (
    DEFAULT_EXECUTABLE,
    DEFAULT_SPEED,
    SPILL_THRESHOLD,
)
from lector.extraction import (
    ContextTag,
    DocumentContext,
    Region,
    RegionExtractor,
)
from lector.process_controller import (
    SUPPORTS_SUSPEND,
    ProcessController,
    ProcessHandle,
    ProcessState,
)
from lector.speak_service import SpeakService, SpeechRequest
from lector.text_normalization import clean_text, normalize_urls

__all__ = [
    "DEFAULT_EXECUTABLE",
    "DEFAULT_SPEED",
    "SPILL_THRESHOLD",
    "SUPPORTS_SUSPEND",
    "ContextTag",
    "DocumentContext",
    "ProcessController",
    "ProcessHandle",
    "ProcessState",
    "Region",
    "RegionExtractor",
    "SpeakService",
    "SpeechRequest",
    "__version__",
    "clean_text",
    "normalize_urls",
]
