"""
LegalTendr Backend — Specialty and Geo Schemas
"""

from typing import Optional

from pydantic import BaseModel, Field


class SpecialtyResponse(BaseModel):
    specialty_id: str
    name: str
    description: Optional[str] = None

    model_config = {"from_attributes": True}


class SpecialtyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None


class GeoCodeResponse(BaseModel):
    id: str
    name: str
    geo_level: str

    model_config = {"from_attributes": True}


class GeoCodeImport(BaseModel):
    """One PSGC row for PUT /api/geo/codes; existing ids are overwritten."""
    id: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=150)
    geo_level: str = Field(min_length=1, max_length=10, description="Prov, City, Mun, ...")


class GeoImportResponse(BaseModel):
    created: int = Field(ge=0)
    updated: int = Field(ge=0)
