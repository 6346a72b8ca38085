"""
Configurações do módulo Ads Manager.
Carrega variáveis de ambiente específicas para integração com a Marketing API do Facebook/Meta.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AdsManagerSettings(BaseSettings):
    """Configurações para integração com Facebook Marketing API."""

    # Graph API
    facebook_api_version: str = Field(
        default="v23.0",
        description="Versão da Graph API do Facebook"
    )
    facebook_app_secret: str = Field(
        default="",
        description="Secret do aplicativo Facebook (habilita appsecret_proof)"
    )

    # Chamadas remotas
    ads_request_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout de cada chamada à Graph API. Não há retry."
    )

    # Cache de credenciais
    ads_credential_ttl_seconds: int = Field(
        default=3600,
        description="TTL do access token do Facebook no cache"
    )
    ads_credential_key_prefix: str = Field(
        default="facebook_token:",
        description="Prefixo das chaves de token no Redis"
    )

    # Listagens locais
    ads_default_page_size: int = 10
    ads_max_page_size: int = 100

    # Criativos
    ads_performance_summary_days: int = Field(
        default=30,
        description="Janela padrão (dias) do resumo de performance de criativos"
    )
    ads_default_preview_format: str = "DESKTOP_FEED_STANDARD"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_ads_manager_settings() -> AdsManagerSettings:
    """
    Retorna instância cacheada das configurações do Ads Manager.
    Use esta função para obter as configurações em qualquer lugar do módulo.
    """
    return AdsManagerSettings()


# Instância global para imports diretos
ads_settings = get_ads_manager_settings()
