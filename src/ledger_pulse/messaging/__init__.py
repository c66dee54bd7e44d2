from .bus import bus, MessageBus, MessageStore, Renderer
from .renderer import CliRenderer, JsonRenderer

__all__ = ["bus", "MessageBus", "MessageStore", "Renderer", "CliRenderer", "JsonRenderer"]
