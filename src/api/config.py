from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from framework.utils.env import parse_bool_env, split_csv


@dataclass(frozen=True)
class AppConfig:
    log_level: str
    cors_origins: List[str]
    expose_model_name: bool
    docs_url: Optional[str]


def load_config() -> AppConfig:
    return AppConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        cors_origins=split_csv(os.getenv("CORS_ORIGINS", "*")),
        expose_model_name=parse_bool_env(os.getenv("EXPOSE_MODEL_NAME", "false")),
        docs_url=None if parse_bool_env(os.getenv("DISABLE_DOCS", "false")) else "/docs",
    )
