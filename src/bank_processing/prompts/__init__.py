from .loader import PromptRenderResult, PromptTemplateLoader

__all__ = ["PromptRenderResult", "PromptTemplateLoader"]
