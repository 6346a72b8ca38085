from projects.ads_manager.repositories.base import SQLAlchemyRepository
from projects.ads_manager.repositories.entities import (
    AdRepository,
    AdSetRepository,
    CampaignRepository,
    OwnerProfileRepository,
)

__all__ = [
    "SQLAlchemyRepository",
    "AdRepository",
    "AdSetRepository",
    "CampaignRepository",
    "OwnerProfileRepository",
]
