DEFAULT_OPEN_TAG = "<think>"
DEFAULT_CLOSE_TAG = "</think>"

__version__ = "0.3.0"
__author__ = "difystream contributors"
__copyright__ = f"Copyright (c) 2026, {__author__}."
__homepage__ = "https://github.com/difystream/difystream"
__docs__ = "Normalize Dify chat streams into typed text, reasoning and tool-call parts."

__all__ = [
    "DEFAULT_CLOSE_TAG",
    "DEFAULT_OPEN_TAG",
    "__author__",
    "__copyright__",
    "__docs__",
    "__homepage__",
    "__version__",
]
