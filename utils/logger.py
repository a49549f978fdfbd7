import logging
import logging.config
from typing import Optional

from config import config, StudySyncConfig


def setup_logging(cfg: Optional[StudySyncConfig] = None) -> logging.Logger:
    cfg = cfg or config
    if cfg.log_to_file:
        cfg.log_dir.mkdir(exist_ok=True, parents=True)
    logging.config.dictConfig(cfg.get_logging_config())
    return logging.getLogger()
