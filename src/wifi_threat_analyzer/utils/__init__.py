"""MAC address and SSID string helpers."""
