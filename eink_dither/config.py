import logging
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class DitherSettings:
    port: int
    log_level: str
    timeout: float
    retries: int
    target_width: int
    target_height: int
    fit_mode: str
    background: str
    algorithm: str
    palette: str
    strength: float
    contrast: float
    max_dimension: int = 4096

    @classmethod
    def from_env(cls) -> "DitherSettings":
        return cls(
            port=int(os.getenv("PORT", "5500")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            timeout=float(os.getenv("SOURCE_TIMEOUT", "10.0")),
            retries=int(os.getenv("SOURCE_RETRIES", "2")),
            target_width=int(os.getenv("TARGET_WIDTH", "1600")),
            target_height=int(os.getenv("TARGET_HEIGHT", "1200")),
            fit_mode=os.getenv("FIT_MODE", "fit").lower(),
            background=os.getenv("BACKGROUND", "#FFFFFF"),
            algorithm=os.getenv("DITHER_ALGORITHM", "floyd-steinberg").lower(),
            palette=os.getenv("PALETTE", "spectra-6").lower(),
            strength=float(os.getenv("DITHER_STRENGTH", "1.0")),
            contrast=float(os.getenv("DITHER_CONTRAST", "1.0")),
            max_dimension=int(os.getenv("MAX_DIMENSION", "4096")),
        )


SETTINGS = DitherSettings.from_env()


def configure_logging() -> logging.Logger:
    logging.basicConfig(level=SETTINGS.log_level)
    return logging.getLogger("eink-dither")
