"""``{{@clock}}``: the server's current time.

Settings entry::

    {"name": "folderise.contrib.clock", "options": {"format": "%Y-%m-%d %H:%M"}}

With ``"header": true`` the time is also sent as an ``X-Folderise-Time``
response header.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

DEFAULT_FORMAT = "%Y-%m-%d %H:%M"
HEADER_NAME = "X-Folderise-Time"


class ClockPlugin:
    def __init__(self, fmt: str = DEFAULT_FORMAT, *, header: bool = False):
        self.fmt = fmt
        self.header = header

    def now(self) -> str:
        return datetime.now().strftime(self.fmt)

    def execute(self) -> str:
        return self.now()

    def middleman(self, request: Any, response: Any) -> None:
        if self.header:
            response.headers[HEADER_NAME] = self.now()


def setup(options: Mapping[str, Any]) -> ClockPlugin:
    return ClockPlugin(str(options.get("format", DEFAULT_FORMAT)), header=bool(options.get("header", False)))
