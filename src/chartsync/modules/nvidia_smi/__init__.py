from .nvidia_smi import NvidiaSMI

__all__ = ["NvidiaSMI"]
