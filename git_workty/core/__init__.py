from .workty import Workty

__all__ = ["Workty"]
