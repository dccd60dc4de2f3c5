"""The common context handed to networking services."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any


def _default_logger() -> logging.Logger:
    return logging.getLogger("capo_net")


@dataclass
class Scope:
    """Client, credentials and logger shared by the services of one cluster."""

    provider_client: Any = None
    provider_client_opts: Any = None
    project_id: str = ""
    logger: logging.Logger = field(default_factory=_default_logger)