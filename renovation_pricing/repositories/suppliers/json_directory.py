"""Supplier directory backed by a JSON file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from pydantic import ValidationError

from renovation_pricing.models.supplier_models import SupplierRecord

logger = logging.getLogger(__name__)


class JsonSupplierDirectory:
    """Reads supplier records from a JSON list; a missing or corrupt file is an empty directory."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def list_suppliers(self) -> List[SupplierRecord]:
        if not self.path.exists():
            logger.warning("Supplier file %s not found.", self.path)
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read supplier file %s: %s", self.path, exc)
            return []
        if not isinstance(raw, list):
            logger.warning("Supplier file %s must hold a JSON list.", self.path)
            return []

        suppliers: List[SupplierRecord] = []
        for item in raw:
            try:
                suppliers.append(SupplierRecord.model_validate(item))
            except ValidationError:
                logger.debug("Skipping invalid supplier record: %s", item)
        return suppliers
