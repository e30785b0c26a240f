"""Template discovery and the helpers exposed to templates."""

from .functions import TEMPLATE_GLOBALS
from .locator import DEFAULT_TEMPLATE_SUFFIX, TemplateHandle, TemplateLocator

__all__ = ["DEFAULT_TEMPLATE_SUFFIX", "TEMPLATE_GLOBALS", "TemplateHandle", "TemplateLocator"]
