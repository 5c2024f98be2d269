from .ntpd import NTPd

__all__ = ["NTPd"]
