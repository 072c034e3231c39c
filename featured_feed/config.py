"""Configuration management for Featured Feed."""

import json
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .logging_config import create_execution_logger
from .models import FeatureItem, FormatError


@dataclass(frozen=True)
class FeedConfig:
    """Presentation settings for a features list."""

    id: str = "usgs_geomag_home"
    author: str = "U.S. Geological Survey"
    site_url: str = "https://geomag.usgs.gov/"
    base_url: str = ""
    title: str = ""

    def __post_init__(self):
        if not self.site_url.endswith("/"):
            raise ValueError(f"site_url must end with '/': {self.site_url}")
        if self.base_url and not self.base_url.endswith("/"):
            raise ValueError(f"base_url must end with '/': {self.base_url}")


class Config:
    """Main configuration manager."""

    # Default items file path
    FEATURES_FILE = "features.json"

    def __init__(self, execution_id: str | None = None):
        """Initialize configuration from environment variables."""
        self.feed_id = os.getenv("FEED_ID", FeedConfig.id)
        self.author = os.getenv("FEED_AUTHOR", FeedConfig.author)
        self.site_url = os.getenv("FEED_SITE_URL", FeedConfig.site_url)
        self.base_url = os.getenv("FEED_BASE_URL", FeedConfig.base_url)
        self.title = os.getenv("FEED_TITLE", FeedConfig.title)
        self.features_file = os.getenv("FEATURES_FILE", self.FEATURES_FILE)
        self.max_features = int(os.getenv("MAX_FEATURES", "3"))
        self.aws_region = os.getenv(
            "CURRENT_AWS_REGION", os.getenv("AWS_DEFAULT_REGION", "us-east-1")
        )
        # items dropped by the last get_items call
        self.skipped = 0
        self.logger = create_execution_logger("config", execution_id)

    def get_feed_config(self) -> FeedConfig:
        """Get presentation settings for the features list."""
        return FeedConfig(
            id=self.feed_id,
            author=self.author,
            site_url=self.site_url,
            base_url=self.base_url,
            title=self.title,
        )

    def get_items(self) -> list[FeatureItem]:
        """Load featured items from the items file.

        The file holds either a list of items or a mapping with an
        ``items`` list. Malformed items are logged, skipped and counted in
        ``skipped``.

        Raises:
            FileNotFoundError: If the items file cannot be found
            ValueError: If the file is not valid JSON/YAML or has the wrong shape
        """
        features_file = Path(self.features_file)
        if not features_file.exists():
            # Try in Lambda root directory
            features_file = Path("/var/task") / self.features_file

        if not features_file.exists():
            raise FileNotFoundError(f"Features file not found: {self.features_file}")

        try:
            with open(features_file, "r", encoding="utf-8") as f:
                if features_file.suffix in (".yaml", ".yml"):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in features file: {e}") from e
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in features file: {e}") from e

        if isinstance(data, dict):
            data = data.get("items")
        if not isinstance(data, list):
            raise ValueError(
                f"Features file must contain a list of items: {features_file}"
            )

        items = []
        self.skipped = 0
        for raw_item in data:
            try:
                items.append(FeatureItem.from_dict(raw_item))
            except FormatError as e:
                self.skipped += 1
                self.logger.log_item_skipped(e.item_id, str(e))
                continue

        self.logger.info(
            f"Loaded {len(items)} items from {features_file}",
            items_count=len(items),
            features_file=str(features_file),
        )
        return items
