"""Version and User-Agent constants."""

VERSION = "0.3.0"
SITE_URL = "https://npmtraffic.com"
USER_AGENT = f"npmtraffic/{VERSION} ({SITE_URL})"
