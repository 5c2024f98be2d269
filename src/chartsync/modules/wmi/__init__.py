from .wmi import WMI

__all__ = ["WMI"]
