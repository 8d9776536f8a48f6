from __future__ import annotations

from dataclasses import dataclass
import os

from framework.utils.env import parse_bool_env


@dataclass(frozen=True)
class WorkflowConfig:
    enable_repair: bool = True
    repair_attempts: int = 1
    repair_max_chars: int = 6000
    string_aware_json: bool = False
    lenient_json: bool = True
    demo_fallback_enabled: bool = True
    log_verbose: bool = False

    @classmethod
    def from_env(cls) -> "WorkflowConfig":
        repair_attempts = int(os.getenv("LLM_REPAIR_ATTEMPTS", "1"))
        if repair_attempts < 0:
            raise ValueError("LLM_REPAIR_ATTEMPTS must be zero or greater.")
        return cls(
            enable_repair=parse_bool_env(os.getenv("LLM_ENABLE_REPAIR", "true")),
            repair_attempts=repair_attempts,
            repair_max_chars=int(os.getenv("LLM_REPAIR_MAX_CHARS", "6000")),
            string_aware_json=parse_bool_env(os.getenv("LLM_JSON_STRING_AWARE", "false")),
            lenient_json=parse_bool_env(os.getenv("LLM_LENIENT_JSON", "true")),
            demo_fallback_enabled=parse_bool_env(os.getenv("DEMO_FALLBACK_ENABLED", "true")),
            log_verbose=parse_bool_env(os.getenv("LLM_LOG_VERBOSE", "false")),
        )
