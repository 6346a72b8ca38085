"""Resolução da conta de anúncios vinculada a cada dono."""

from datetime import datetime
from typing import Optional

from shared.core.exceptions import UnauthorizedException, ValidationException
from shared.core.logging import get_logger
from shared.domain.interfaces.repository import Repository
from projects.ads_manager.models import OwnerProfile

logger = get_logger(__name__)


class OwnerAccountResolver:
    """Lê e grava o ad_account_id do perfil do dono. Falha fechada."""

    def __init__(self, profiles: Repository[OwnerProfile, str]):
        self.profiles = profiles

    async def get_ad_account_id(self, owner_id: str) -> str:
        profile = await self.profiles.get_by_id(owner_id)
        if profile is None or not profile.ad_account_id:
            logger.warning("Conta de anúncios não configurada", owner_id=owner_id)
            raise UnauthorizedException(
                "Conta de anúncios do Facebook não configurada para o usuário",
                owner_id=owner_id,
            )
        return profile.ad_account_id

    async def resolve(self, owner_id: str, requested: Optional[str] = None) -> str:
        """Conta informada no request ou, na falta dela, a do perfil."""
        if requested:
            return requested
        return await self.get_ad_account_id(owner_id)

    async def link_account(self, owner_id: str, ad_account_id: str) -> OwnerProfile:
        if not ad_account_id or not ad_account_id.strip():
            raise ValidationException("ad_account_id", "campo obrigatório")
        account_id = ad_account_id.strip().removeprefix("act_")

        profile = await self.profiles.get_by_id(owner_id)
        if profile is None:
            profile = OwnerProfile(
                owner_id=owner_id,
                ad_account_id=account_id,
                updated_at=datetime.utcnow(),
            )
            profile = await self.profiles.add(profile)
        else:
            profile.ad_account_id = account_id
            profile.updated_at = datetime.utcnow()
            profile = await self.profiles.update(profile)

        logger.info("Conta de anúncios vinculada", owner_id=owner_id, ad_account_id=account_id)
        return profile
