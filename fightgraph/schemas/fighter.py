"""
Schemas Pydantic de lutadores.

- FighterProfile / FighterPage: payload do contrato de busca (ProfileSource)
- FighterIndexEntry: entrada persistida no banco local (nome -> id)
"""
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FighterProfile(BaseModel):
    """
    Dados mínimos de um lutador extraídos da página.

    Campos:
        name: Nome de exibição - obrigatório e não vazio
        nickname: Apelido, quando houver
    """
    name: str = Field(..., min_length=1, description="Nome de exibição do lutador")
    nickname: Optional[str] = Field(default=None, description="Apelido do lutador")

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("nickname")
    @classmethod
    def _blank_nickname_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class FighterPage(BaseModel):
    """Resultado do contrato de busca: perfil + ids de lutadores linkados."""
    fighter_id: str = Field(..., min_length=1)
    profile: FighterProfile
    linked_ids: List[str] = Field(default_factory=list)

    @field_validator("linked_ids")
    @classmethod
    def _dedupe_links(cls, value: List[str]) -> List[str]:
        # Preserva a ordem da primeira ocorrência
        return list(dict.fromkeys(v for v in value if v))


class FighterIndexEntry(BaseModel):
    """Entrada do banco local, chaveada pelo nome normalizado."""
    id: str
    nickname: Optional[str] = None
    last_updated: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        alias="lastUpdated",
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("last_updated")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class FighterMatch(BaseModel):
    """Resultado de busca no banco local."""
    name: str
    id: str
    nickname: Optional[str] = None
