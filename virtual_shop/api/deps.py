from fastapi import Request
from virtual_shop.db.session import Database
from virtual_shop.services.storage import ObjectStore
from virtual_shop.services.urls import StorageUrls

def get_db(request: Request):
    database: Database = request.app.state.database
    db = database.session()
    try:
        database.ping(db)
        yield db
    finally: db.close()

def get_storage(request: Request) -> ObjectStore:
    return request.app.state.storage

def get_urls(request: Request) -> StorageUrls:
    return request.app.state.urls

def ctx(urls: StorageUrls) -> dict:
    return {'urls': urls}

def purge(storage: ObjectStore, urls: StorageUrls, values) -> list:
    """Best-effort removal of the objects behind stored image values.

    Legacy full-URL values are skipped. Returns the keys that failed.
    """
    keys = [k for k in (urls.stored_key(v) for v in values) if k]
    return storage.delete_many(keys)
