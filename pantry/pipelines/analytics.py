import logging
from typing import Optional

import pandas as pd
from pydantic import ValidationError

from .. import settings
from ..clock import Clock
from ..pipeline import DataPipeline
from ..repositories import InventoryRepository, TransactionRepository
from ..schemas import CategoryAnalytics, ProductAnalytics, TransactionType

logger = logging.getLogger(__name__)

TRANSACTION_COLUMNS = ["id", "type", "itemId", "itemName", "quantity", "user", "timestamp", "unit"]


def transactions_frame(transactions: TransactionRepository) -> pd.DataFrame:
    """The transaction log as a DataFrame with UTC timestamps."""
    rows = [t.model_dump(mode="json", by_alias=True) for t in transactions.get_transactions()]
    df = pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    df["quantity"] = df["quantity"].astype(float)
    return df


def _totals(tx: pd.DataFrame, kind: TransactionType) -> pd.Series:
    return tx[tx["type"] == kind.value].groupby("itemId")["quantity"].sum()


class ProductAnalyticsPipeline(DataPipeline):
    """Stock movement and popularity for every item in the inventory."""

    def __init__(
        self,
        inventory: InventoryRepository,
        transactions: TransactionRepository,
        clock: Optional[Clock] = None,
        test_mode: bool = False,
    ):
        super().__init__("products", settings.PRODUCT_REPORT_BASE, clock=clock, test_mode=test_mode)
        self.inventory = inventory
        self.transactions = transactions

    def extract(self) -> pd.DataFrame | None:
        logger.info("--- Reading inventory and transaction log ---")
        items = self.inventory.get_all_items()
        if not items:
            return None

        # Kept for transform, like the inventory frame returned below.
        self.transactions_df = transactions_frame(self.transactions)
        logger.info(f"  > {len(items)} items, {len(self.transactions_df)} transactions")
        return pd.DataFrame([item.model_dump() for item in items])

    def transform(self, df: pd.DataFrame) -> list[ProductAnalytics] | None:
        logger.info("\n--- Aggregating Transactions ---")
        tx = self.transactions_df
        now = pd.Timestamp(self.generated_at or self.clock.now()).tz_convert("UTC")

        report = pd.DataFrame(
            {
                "id": df["id"],
                "name": df["name"],
                "category": df["category"],
                "current_stock": df["quantity"].astype(float),
            }
        )
        report["total_sold"] = report["id"].map(_totals(tx, TransactionType.OUT)).fillna(0)
        report["total_restocked"] = (
            report["id"].map(_totals(tx, TransactionType.IN)).fillna(0)
        )

        # Popularity: units handed out per day since the item's first movement,
        # never dividing by less than one day.
        first_seen = report["id"].map(tx.groupby("itemId")["timestamp"].min())
        days_active = (
            (now - pd.to_datetime(first_seen, utc=True)).dt.total_seconds() / 86400
        ).fillna(0).clip(lower=1)
        report["popularity_score"] = report["total_sold"] / days_active

        restocked = report["total_restocked"].where(report["total_restocked"] != 0, 1)
        report["turnover_rate"] = report["total_sold"] / restocked

        try:
            logger.info("Validating data against schema...")
            validated_data = [ProductAnalytics(**row) for row in report.to_dict("records")]
            logger.info(f"✅ Data validation successful ({len(validated_data)} records).")
            return validated_data
        except ValidationError as e:
            logger.error("❌ Data validation failed!")
            logger.error(e)
            return None


class CategoryAnalyticsPipeline(DataPipeline):
    """Items of one category ranked by how much has been handed out."""

    def __init__(
        self,
        category: str,
        inventory: InventoryRepository,
        transactions: TransactionRepository,
        clock: Optional[Clock] = None,
        test_mode: bool = False,
    ):
        super().__init__(
            f"category {category}",
            f"{settings.CATEGORY_REPORT_BASE}_{category}",
            clock=clock,
            test_mode=test_mode,
        )
        self.category = category
        self.inventory = inventory
        self.transactions = transactions

    def extract(self) -> pd.DataFrame | None:
        items = [i for i in self.inventory.get_all_items() if i.category == self.category]
        if not items:
            logger.warning(f"  > No items in category '{self.category}'.")
            return None
        self.transactions_df = transactions_frame(self.transactions)
        return pd.DataFrame([item.model_dump() for item in items])

    def transform(self, df: pd.DataFrame) -> list[CategoryAnalytics] | None:
        report = pd.DataFrame(
            {"id": df["id"], "name": df["name"], "current_stock": df["quantity"].astype(float)}
        )
        report["total_sold"] = (
            report["id"].map(_totals(self.transactions_df, TransactionType.OUT)).fillna(0)
        )
        report = report.sort_values("total_sold", ascending=False, kind="stable")

        try:
            return [CategoryAnalytics(**row) for row in report.to_dict("records")]
        except ValidationError as e:
            logger.error(f"❌ Data validation failed for category '{self.category}'!")
            logger.error(e)
            return None
