"""
LegalTendr Backend — Catalog Service Tests
============================================

What:  Specialty listing/creation, the province → city lookup and geo code import.
"""

import pytest

from legaltendr.exceptions import ConflictError, ValidationError
from legaltendr.models import GeoCode
from legaltendr.schemas.catalog import GeoCodeImport
from legaltendr.services.catalog_service import CatalogService


@pytest.fixture
def geo_rows():
    return [
        GeoCode(id="133900000", name="City of Manila", geo_level="City"),
        GeoCode(id="072200000", name="Cebu", geo_level="Prov"),
        GeoCode(id="072217000", name="Lapu-Lapu City", geo_level="City"),
        GeoCode(id="072230000", name="Argao", geo_level="Mun"),
        GeoCode(id="072201000", name="Alcantara", geo_level="Bgy"),
        GeoCode(id="034900000", name="Nueva Ecija", geo_level="Prov"),
        GeoCode(id="034903000", name="Cabanatuan City", geo_level="City"),
    ]


class TestSpecialties:

    def setup_method(self):
        self.service = CatalogService()

    @pytest.mark.asyncio
    async def test_list_is_ordered_by_name(self, db_session):
        names = [s.name for s in await self.service.list_specialties(db_session)]
        assert names == sorted(names)
        assert len(names) == 8

    @pytest.mark.asyncio
    async def test_create_specialty_gets_next_id(self, db_session):
        specialty = await self.service.create_specialty(db_session, "  Tax Law ", "BIR disputes")
        assert specialty.specialty_id == "s9"
        assert specialty.name == "Tax Law"

    @pytest.mark.asyncio
    async def test_duplicate_name_is_a_conflict(self, db_session):
        with pytest.raises(ConflictError):
            await self.service.create_specialty(db_session, "family law")

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await self.service.create_specialty(db_session, "   ")

    @pytest.mark.asyncio
    async def test_known_and_validated_ids(self, db_session):
        assert await self.service.known_specialty_ids(db_session, ["s2", "s2", "nope", "s1"]) == ["s2", "s1"]
        with pytest.raises(ValidationError, match="nope"):
            await self.service.validate_specialty_ids(db_session, ["s1", "nope"])


class TestGeoCodes:

    def setup_method(self):
        self.service = CatalogService()

    @pytest.mark.asyncio
    async def test_list_provinces(self, db_session, geo_rows):
        db_session.add_all(geo_rows)
        await db_session.flush()

        provinces = await self.service.list_provinces(db_session)
        assert [p.name for p in provinces] == ["Cebu", "Nueva Ecija"]

    @pytest.mark.asyncio
    async def test_list_cities_by_prefix(self, db_session, geo_rows):
        db_session.add_all(geo_rows)
        await db_session.flush()

        cities = await self.service.list_cities(db_session, "072200000")
        # Barangays and other provinces are excluded
        assert [c.name for c in cities] == ["Argao", "Lapu-Lapu City"]

    @pytest.mark.asyncio
    async def test_empty_province_id_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await self.service.list_cities(db_session, "  ")

    @pytest.mark.asyncio
    async def test_import_fills_empty_table(self, db_session):
        assert await self.service.list_provinces(db_session) == []

        created, updated = await self.service.import_geo_codes(
            db_session,
            [
                GeoCodeImport(id="072200000", name="Cebu", geo_level="Prov"),
                GeoCodeImport(id="072217000", name="Lapu-Lapu City", geo_level="City"),
            ],
        )

        assert (created, updated) == (2, 0)
        assert [p.name for p in await self.service.list_provinces(db_session)] == ["Cebu"]
        cities = await self.service.list_cities(db_session, "072200000")
        assert [c.name for c in cities] == ["Lapu-Lapu City"]

    @pytest.mark.asyncio
    async def test_import_overwrites_known_ids(self, db_session, geo_rows):
        db_session.add_all(geo_rows)
        await db_session.flush()

        created, updated = await self.service.import_geo_codes(
            db_session,
            [
                GeoCodeImport(id="072200000", name=" Cebu Province ", geo_level="Prov"),
                GeoCodeImport(id="174000000", name="Marinduque", geo_level="Prov"),
            ],
        )

        assert (created, updated) == (1, 1)
        names = [p.name for p in await self.service.list_provinces(db_session)]
        assert names == ["Cebu Province", "Marinduque", "Nueva Ecija"]

    @pytest.mark.asyncio
    async def test_import_rejects_repeated_id(self, db_session):
        with pytest.raises(ValidationError, match="072200000"):
            await self.service.import_geo_codes(
                db_session,
                [
                    GeoCodeImport(id="072200000", name="Cebu", geo_level="Prov"),
                    GeoCodeImport(id="072200000", name="Cebu again", geo_level="Prov"),
                ],
            )
        assert await self.service.list_provinces(db_session) == []

    @pytest.mark.asyncio
    async def test_import_nothing(self, db_session):
        assert await self.service.import_geo_codes(db_session, []) == (0, 0)
