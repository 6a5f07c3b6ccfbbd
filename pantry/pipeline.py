import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional

import pandas as pd

from . import data_handler
from .clock import Clock, SystemClock

logger = logging.getLogger(__name__)


class DataPipeline(ABC):
    """
    Abstract base class for report pipelines.
    Follows an Extract -> Transform -> Load (ETL) pattern.
    """

    def __init__(
        self,
        report_type: str,
        filename_base: str,
        clock: Optional[Clock] = None,
        test_mode: bool = False,
    ):
        self.report_type = report_type
        self.filename_base = filename_base
        self.clock = clock or SystemClock()
        self.test_mode = test_mode
        self.generated_at: Optional[datetime] = None

    def run(self) -> Optional[list[Any]]:
        """
        Orchestrates the pipeline execution. Returns the validated rows, or
        None when nothing could be produced.
        """
        logger.info(f"🚀 STEP: {self.report_type.upper()} REPORT")
        logger.info("-" * 30)
        self.generated_at = self.clock.now()

        # --- 1. EXTRACT ---
        raw_data = self.extract()
        if raw_data is None or raw_data.empty:
            logger.warning(f"⚠️ No data extracted for {self.report_type}.")
            self.load([])
            return None

        # --- 2. TRANSFORM ---
        validated_data = self.transform(raw_data)
        if validated_data is None:
            logger.error(f"❌ Transformation failed for {self.report_type}.")
            return None

        # --- 3. LOAD ---
        self.load(validated_data)

        logger.info(f"✅ {self.report_type.capitalize()} Pipeline Finished.\n")
        logger.info("=" * 60)
        return validated_data

    @abstractmethod
    def extract(self) -> pd.DataFrame | None:
        """
        Reads the store and returns the primary DataFrame for the report.
        """
        pass

    @abstractmethod
    def transform(self, df: pd.DataFrame) -> list[Any] | None:
        """
        Aggregates and validates. Returns a list of validated Pydantic models.
        """
        pass

    def metadata(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at.isoformat() if self.generated_at else None,
        }

    def load(self, validated_data: list[Any]):
        """
        Saves data to disk and posts to webhook.
        """
        if validated_data:
            data_handler.save_outputs(validated_data, self.filename_base)
        else:
            logger.warning("No data to save to disk.")

        if not self.test_mode:
            data_handler.post_to_webhook(
                validated_data=validated_data,
                metadata=self.metadata(),
                report_type=self.report_type,
            )
        else:
            logger.info("🧪 Test Mode: Skipping webhook post.")
