"""Settings read from the environment, plus logging setup.

Every tunable in the service comes from here: where the database lives,
the store policy numbers, and how chatty the logs are.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path

from grocer.domain.model.value_objects import Money
from grocer.domain.service.pricing import StorePolicy

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DEFAULT_DB_PATH = Path(__file__).resolve().parents[3] / "data" / "grocer.db"


@dataclass(frozen=True)
class Settings:
    db_path: Path = _DEFAULT_DB_PATH
    db_timeout: float = 5.0
    tax_rate: Decimal = Decimal("0.05")
    free_delivery_threshold: Decimal = Decimal("500")
    delivery_fee: Decimal = Decimal("50")
    delivery_estimate_days: int = 2
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @staticmethod
    def from_env() -> Settings:
        return Settings(
            db_path=Path(os.getenv("GROCER_DB_PATH", str(_DEFAULT_DB_PATH))),
            db_timeout=float(os.getenv("GROCER_DB_TIMEOUT", "5.0")),
            tax_rate=Decimal(os.getenv("GROCER_TAX_RATE", "0.05")),
            free_delivery_threshold=Decimal(
                os.getenv("GROCER_FREE_DELIVERY_THRESHOLD", "500")
            ),
            delivery_fee=Decimal(os.getenv("GROCER_DELIVERY_FEE", "50")),
            delivery_estimate_days=int(os.getenv("GROCER_DELIVERY_ESTIMATE_DAYS", "2")),
            log_level=os.getenv("GROCER_LOG_LEVEL", "INFO"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
        )

    def policy(self) -> StorePolicy:
        return StorePolicy(
            tax_rate=self.tax_rate,
            free_delivery_threshold=Money(self.free_delivery_threshold),
            delivery_fee=Money(self.delivery_fee),
            delivery_estimate_days=self.delivery_estimate_days,
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
