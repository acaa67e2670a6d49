from . import ctl, der

__all__ = ["ctl", "der"]
