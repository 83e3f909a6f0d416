from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from telebill.models.regional_pricing import RegionalPricing, VolumeDiscount


class RegionalPricingRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_effective(self, region: str, now: datetime) -> RegionalPricing | None:
        """Most recent pricing row whose effective window covers ``now``."""
        return (
            self.db.query(RegionalPricing)
            .filter(
                RegionalPricing.region == region,
                RegionalPricing.effective_from <= now,
                or_(
                    RegionalPricing.effective_until.is_(None),
                    RegionalPricing.effective_until > now,
                ),
            )
            .order_by(RegionalPricing.effective_from.desc())
            .first()
        )

    def get_volume_discounts(self, region: str, usage_type: str) -> list[VolumeDiscount]:
        return (
            self.db.query(VolumeDiscount)
            .filter(
                VolumeDiscount.region == region,
                VolumeDiscount.usage_type == usage_type,
            )
            .order_by(VolumeDiscount.min_usage.asc())
            .all()
        )
