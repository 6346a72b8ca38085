"""
Modelos do módulo Ads Manager.
"""

from projects.ads_manager.models.ad import Ad
from projects.ads_manager.models.adset import AdSet
from projects.ads_manager.models.campaign import Campaign
from projects.ads_manager.models.owner import OwnerProfile

__all__ = [
    "Ad",
    "AdSet",
    "Campaign",
    "OwnerProfile",
]
