import logging
from typing import Optional
from fastapi import Depends, FastAPI
from sqlalchemy.orm import Session
from prometheus_fastapi_instrumentator import Instrumentator
from virtual_shop.version import VERSION
from virtual_shop.core.config import Settings
from virtual_shop.core.errors import register_error_handlers
from virtual_shop.db.session import Database
from virtual_shop.services.storage import ObjectStore
from virtual_shop.services.urls import StorageUrls
from virtual_shop.api.deps import get_db
from virtual_shop.api import art_stories, placement_images, placements, products, scenes, spaces, themes, uploads

logger = logging.getLogger(__name__)

def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None, storage: Optional[ObjectStore] = None) -> FastAPI:
    """Build the API; tests pass their own database and object store."""
    settings = settings or Settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    app = FastAPI(title='Virtual Shop API', version=VERSION)
    app.state.settings = settings
    app.state.database = database or Database(settings.POSTGRES_DSN, pool_size=settings.DB_POOL_SIZE)
    app.state.storage = storage or ObjectStore.from_settings(settings)
    app.state.urls = StorageUrls.from_settings(settings)
    prefix = settings.API_PREFIX.rstrip('/')

    # Instrument the app before adding routes
    if settings.METRICS_ENABLED:
        Instrumentator().instrument(app).expose(app, include_in_schema=False, endpoint='/metrics', should_gzip=True)

    register_error_handlers(app)

    @app.get('/health')
    def health(): return {'status': 'ok'}

    @app.get(f'{prefix}/health')
    def api_health(db: Session = Depends(get_db)):
        return {'success': True, 'data': {'status': 'ok', 'database': 'connected'}}

    @app.get(f'{prefix}/_info')
    def info(): return {'service': 'virtual-shop', 'version': VERSION}

    @app.on_event('startup')
    async def startup_event():
        for route in app.routes:
            if hasattr(route, 'methods') and hasattr(route, 'path'):
                logger.debug('%s %s', sorted(route.methods), route.path)

    @app.on_event('shutdown')
    async def shutdown_event():
        app.state.database.dispose()

    app.include_router(themes.router,           prefix=f'{prefix}/themes',           tags=['themes'])
    app.include_router(scenes.router,           prefix=f'{prefix}/scenes',           tags=['scenes'])
    app.include_router(spaces.router,           prefix=f'{prefix}/spaces',           tags=['spaces'])
    app.include_router(placements.router,       prefix=f'{prefix}/placements',       tags=['placements'])
    app.include_router(placement_images.router, prefix=f'{prefix}/placement-images', tags=['placement-images'])
    app.include_router(products.router,         prefix=f'{prefix}/products',         tags=['products'])
    app.include_router(art_stories.router,      prefix=f'{prefix}/art-stories',      tags=['art-stories'])
    app.include_router(uploads.router,          prefix=f'{prefix}/uploads',          tags=['uploads'])
    return app
