"""Schemas Pydantic para criativos (sem espelho local)."""

from typing import Any, Optional

from projects.ads_manager.schemas.base import CamelCaseModel
from projects.ads_manager.schemas.insights import DateRange, InsightsRequest


class CreateCreativeRequest(CamelCaseModel):
    """
    Criação de AdCreative.

    Pelo menos um entre object_story_id, object_story_spec, asset_feed_spec
    ou template_url deve ser informado.
    """
    name: Optional[str] = None
    object_story_id: Optional[str] = None
    object_story_spec: Optional[dict[str, Any]] = None
    asset_feed_spec: Optional[dict[str, Any]] = None
    template_url: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    image_hash: Optional[str] = None
    image_url: Optional[str] = None
    video_id: Optional[str] = None
    link_url: Optional[str] = None
    object_url: Optional[str] = None
    object_type: Optional[str] = None
    call_to_action_type: Optional[str] = None
    call_to_action: Optional[dict[str, Any]] = None
    url_tags: Optional[str] = None
    instagram_actor_id: Optional[str] = None
    instagram_permalink_url: Optional[str] = None
    product_set_id: Optional[str] = None
    degrees_of_freedom_spec: Optional[dict[str, Any]] = None
    platform_customizations: Optional[dict[str, Any]] = None
    branded_content_sponsor_page_id: Optional[str] = None
    authorization_category: Optional[str] = None
    adlabels: Optional[list[dict[str, Any]]] = None


class UpdateCreativeRequest(CamelCaseModel):
    """Campos de AdCreative que a Graph API aceita em update."""
    name: Optional[str] = None
    status: Optional[str] = None
    adlabels: Optional[list[dict[str, Any]]] = None
    authorization_category: Optional[str] = None


class CreativeUpdateItem(CamelCaseModel):
    """Item de atualização em lote."""
    creative_id: str
    update: UpdateCreativeRequest


class CreativePreviewRequest(CamelCaseModel):
    """
    Geração de preview. Requer ``ad_format`` e um entre ``creative_id``
    (criativo existente) ou ``creative_spec`` (criativo ainda não criado).
    """
    ad_format: Optional[str] = None
    creative_id: Optional[str] = None
    creative_spec: Optional[dict[str, Any]] = None
    locale: Optional[str] = None
    post: Optional[dict[str, Any]] = None
    product_item_ids: Optional[list[str]] = None
    place_page_id: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    dynamic_creative_spec: Optional[dict[str, Any]] = None
    dynamic_asset_label: Optional[str] = None


class CreativeListRequest(CamelCaseModel):
    """Listagem paginada por cursor."""
    fields: Optional[list[str]] = None
    limit: Optional[int] = None
    after: Optional[str] = None


class CreativeSearchRequest(CamelCaseModel):
    query: str
    fields: Optional[list[str]] = None
    limit: Optional[int] = None


class CreativeWithInsightsRequest(CamelCaseModel):
    creative_id: str
    insights: Optional[InsightsRequest] = None


class CreativePerformanceRequest(CamelCaseModel):
    creative_id: str
    date_range: Optional[DateRange] = None
