from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf

load_dotenv()

logger = logging.getLogger(__name__)

_HERE = Path(__file__).resolve()
_CANDIDATE_CONFIG_PATHS = [parent / "config/config.yaml" for parent in _HERE.parents[:4]]

CONFIG_ENV_VAR = "EVERYTHINGPDF_CONFIG"

DEFAULTS: Dict[str, Any] = {
    "limits": {"free_uploads": 2},
    "plan": {
        "storage_key": "everythingpdf_isPro",
        "db_path": "data/everythingpdf.db",
    },
    "output": {
        "default_filename": "everythingpdf.pdf",
        "share_prefix": "public/",
    },
    "s3": {
        "bucket": "",
        "expiration": 3600,
        "public_urls": False,
    },
    "logging": {"level": "INFO"},
}

# Environment variables that override individual keys.
ENV_OVERRIDES = {
    "S3_BUCKET_NAME": "s3.bucket",
    "EVERYTHINGPDF_FREE_LIMIT": "limits.free_uploads",
    "EVERYTHINGPDF_DB_PATH": "plan.db_path",
    "EVERYTHINGPDF_LOG_LEVEL": "logging.level",
}


def find_config_file() -> Optional[Path]:
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit)
        if not path.exists():
            raise FileNotFoundError(f"{CONFIG_ENV_VAR} points to a missing file: {path}")
        return path
    return next((path for path in _CANDIDATE_CONFIG_PATHS if path.exists()), None)


def _env_config() -> DictConfig:
    config = OmegaConf.create()
    for env_name, dotted_key in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is not None and value != "":
            OmegaConf.update(config, dotted_key, value, force_add=True)
    return config


def make_runtime_config(overrides: Optional[Dict[str, Any]] = None) -> DictConfig:
    """
    Merge defaults, the config file, environment variables and ``overrides``.

    The result is in struct mode, so overrides naming unknown keys raise.
    """
    base = OmegaConf.create(DEFAULTS)
    OmegaConf.set_struct(base, True)

    layers = []
    config_path = find_config_file()
    if config_path is not None:
        logger.debug("Loading configuration from %s", config_path)
        layers.append(OmegaConf.load(config_path))
    layers.append(_env_config())
    if overrides:
        layers.append(OmegaConf.create(overrides))

    merged = DictConfig(OmegaConf.merge(base, *layers))
    if int(merged.limits.free_uploads) < 0:
        raise ValueError("limits.free_uploads must be >= 0")
    return merged


@lru_cache(maxsize=1)
def get_settings() -> DictConfig:
    return make_runtime_config()


def configure_logging(settings: Optional[DictConfig] = None) -> None:
    settings = settings or get_settings()
    level = str(settings.logging.level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
