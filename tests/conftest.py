"""Shared fixtures: an in-memory SQLite database and a fake object store."""

import pytest
from fastapi.testclient import TestClient

from virtual_shop.core.config import Settings
from virtual_shop.main import create_app
from virtual_shop.services.storage import ObjectStore
from virtual_shop.services.urls import StorageUrls

from fakes import BASE_URL, FakeMinio, memory_database


@pytest.fixture()
def settings():
    return Settings(
        POSTGRES_DSN='sqlite://',
        S3_BUCKET='o1-virtual-shop',
        S3_REGION='ap-south-1',
        S3_PUBLIC_BASE_URL='',
        API_PREFIX='/api',
        METRICS_ENABLED=False,
    )


@pytest.fixture()
def urls():
    return StorageUrls(BASE_URL)


@pytest.fixture()
def database():
    db = memory_database()
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture()
def fake_minio():
    return FakeMinio()


@pytest.fixture()
def storage(fake_minio):
    return ObjectStore(fake_minio, 'o1-virtual-shop')


@pytest.fixture()
def session(database):
    db = database.session()
    yield db
    db.close()


@pytest.fixture()
def app(settings, database, storage):
    return create_app(settings, database=database, storage=storage)


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c
