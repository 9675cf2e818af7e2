from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy.orm import Session
from virtual_shop.api.deps import ctx, get_db, get_storage, get_urls, purge
from virtual_shop.db.models import ThemeType
from virtual_shop.db.repositories import ThemeRepository
from virtual_shop.schemas import ThemeCreate, ThemeRead, ThemeUpdate
from virtual_shop.services.storage import ObjectStore
from virtual_shop.services.urls import StorageUrls

router = APIRouter()

def _values(payload):
    values = payload.model_dump(exclude_unset=True)
    if 'metadata' in values: values['metadata_'] = values.pop('metadata') or {}
    return values

@router.get('')
def list_themes(theme_type: Optional[ThemeType] = None, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    themes = [ThemeRead.model_validate(t, context=ctx(urls)) for t in ThemeRepository(db).list(theme_type)]
    return {'success': True, 'data': themes, 'count': len(themes)}

@router.post('', status_code=201)
def create_theme(payload: ThemeCreate, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    values = _values(payload)
    values.setdefault('metadata_', {})
    theme = ThemeRepository(db).create(values)
    return {'success': True, 'data': ThemeRead.model_validate(theme, context=ctx(urls)), 'message': 'Theme created successfully'}

@router.get('/{theme_id}')
def get_theme(theme_id: int, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    return {'success': True, 'data': ThemeRead.model_validate(ThemeRepository(db).get(theme_id), context=ctx(urls))}

@router.put('/{theme_id}')
def update_theme(theme_id: int, payload: ThemeUpdate, db: Session = Depends(get_db), urls: StorageUrls = Depends(get_urls)):
    theme = ThemeRepository(db).update(theme_id, _values(payload))
    return {'success': True, 'data': ThemeRead.model_validate(theme, context=ctx(urls)), 'message': 'Theme updated successfully'}

@router.delete('/{theme_id}')
def delete_theme(theme_id: int, db: Session = Depends(get_db), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    summary, keys = ThemeRepository(db).delete(theme_id)
    purge(storage, urls, keys)
    return {'success': True, 'data': summary, 'message': f'Theme "{summary["name"]}" deleted successfully'}
