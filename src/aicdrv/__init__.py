"""aicdrv - AIC8800D80 WiFi driver installer."""

__version__ = "0.3.0"
