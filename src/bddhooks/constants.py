from typing import Set, Tuple

VERSION: str = "0.1.0-dev"

BDD_CONTEXT_FIXTURE: str = "bdd_context"
"""Resource bag key holding the BddContext of the running scenario or worker."""

AUTO_INJECT_FIXTURES: Tuple[str, ...] = ("test_info", "test", "tags")
"""Fixtures automatically injected into every scenario hook and decorator step call."""

WORKER_AUTO_INJECT_FIXTURES: Tuple[str, ...] = ("worker_info",)
"""Fixtures automatically injected into every worker hook call."""

ENV_PREFIX: str = "BDDHOOKS_"

ENV_OPTIONS: Set = {"default_timeout", "logging_level"}

USER_CONFIG: str = ".bddhooks"

DEFAULT_TIMEOUT = None

DEFAULT_LOGGING_LEVEL: str = "WARNING"
