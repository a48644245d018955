from copilot_stream.events.bus import EventBus, Handler

__all__ = ["EventBus", "Handler"]
