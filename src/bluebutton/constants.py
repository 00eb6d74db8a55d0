"""Constants shared across the Blue Button SDK."""

from __future__ import annotations

from enum import Enum

SDK_VERSION = "1.0.0"

DEFAULT_API_VERSION = "2"
DEFAULT_CONFIG_FILENAME = ".bluebutton-config.json"

# Sent with every token endpoint request
SDK_HEADERS = {
    "X-BLUEBUTTON-SDK": "python",
    "X-BLUEBUTTON-SDK-VERSION": SDK_VERSION,
}


class Environment(str, Enum):
    """Blue Button 2.0 deployments and their base URLs."""

    SANDBOX = "SANDBOX"
    PRODUCTION = "PRODUCTION"

    @property
    def base_url(self) -> str:
        return ENVIRONMENT_URLS[self]


ENVIRONMENT_URLS = {
    Environment.SANDBOX: "https://sandbox.bluebutton.cms.gov",
    Environment.PRODUCTION: "https://api.bluebutton.cms.gov",
}
