"""Operation helpers layered on top of TemplateSession."""

from .batch import TemplateBatch

__all__ = ["TemplateBatch"]
