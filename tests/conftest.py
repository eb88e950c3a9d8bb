from pathlib import Path
from typing import List

import pytest

from api.config import Settings
from scraper.models import EmisorRecord
from tests.fakes import CSV_HEADER, write_csv


@pytest.fixture
def sample_records() -> List[EmisorRecord]:
    return [
        EmisorRecord(orden="1", rnc="101000011", razon_social="ACME DOMINICANA SRL",
                     nombre_comercial="ACME", fecha_autorizacion="01/02/2024", fecha_limite="01/02/2025"),
        EmisorRecord(orden="2", rnc="130000022", razon_social="BANCO DEL CARIBE SA",
                     nombre_comercial="BANCARIBE", fecha_autorizacion="15/03/2024", fecha_limite=""),
        EmisorRecord(orden="3", rnc="40200000033", razon_social="ZETA SERVICIOS EIRL",
                     nombre_comercial="Acme Express", fecha_autorizacion="20/04/2024", fecha_limite=""),
    ]


@pytest.fixture
def sample_csv(tmp_path: Path) -> Path:
    return write_csv(tmp_path / "emisores.csv", [
        CSV_HEADER,
        "1,101000011,ACME DOMINICANA SRL,ACME,01/02/2024,01/02/2025",
        "2,130000022,BANCO DEL CARIBE SA,BANCARIBE,15/03/2024,",
        "3,40200000033,ZETA SERVICIOS EIRL,Acme Express,20/04/2024,",
    ])


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        db_path=str(tmp_path / "test.db"),
        download_path=str(tmp_path / "downloads"),
        scheduler_enabled=False,
        force_update_on_start=False,
        rate_limit_max=1000,
    )
