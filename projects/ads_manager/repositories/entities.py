"""Repositories concretos do espelho local."""

from projects.ads_manager.models import Ad, AdSet, Campaign, OwnerProfile
from projects.ads_manager.repositories.base import SQLAlchemyRepository


class CampaignRepository(SQLAlchemyRepository[Campaign]):
    model = Campaign


class AdSetRepository(SQLAlchemyRepository[AdSet]):
    model = AdSet


class AdRepository(SQLAlchemyRepository[Ad]):
    model = Ad


class OwnerProfileRepository(SQLAlchemyRepository[OwnerProfile]):
    """Perfis indexados por owner_id (chave primária)."""
    model = OwnerProfile
