from .block_detection import check_text, detect_block
from .selector_resolution import SelectorMatch, resolve

__all__ = [
    "SelectorMatch",
    "check_text",
    "detect_block",
    "resolve",
]
