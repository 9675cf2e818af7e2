from fastapi import APIRouter, Depends
from typing import Optional
from sqlalchemy.orm import Session
from virtual_shop.api.deps import get_db, get_storage, get_urls, purge
from virtual_shop.db.repositories import PlacementRepository
from virtual_shop.schemas import PlacementCreate, PlacementRead, PlacementUpdate
from virtual_shop.services.storage import ObjectStore
from virtual_shop.services.urls import StorageUrls

router = APIRouter()

def _read(placement, art_story_title=None):
    data = PlacementRead.model_validate(placement)
    if art_story_title is None and placement.art_story is not None:
        art_story_title = placement.art_story.title
    data.art_story_title = art_story_title
    return data

@router.get('')
def list_placements(space_id: Optional[int] = None, db: Session = Depends(get_db)):
    placements = [_read(p, title) for p, title in PlacementRepository(db).list(space_id)]
    return {'success': True, 'data': placements, 'count': len(placements)}

@router.post('', status_code=201)
def create_placement(payload: PlacementCreate, db: Session = Depends(get_db)):
    placement = PlacementRepository(db).create(payload.model_dump(exclude_unset=True))
    return {'success': True, 'data': _read(placement), 'message': 'Placement created successfully'}

@router.get('/{placement_id}')
def get_placement(placement_id: int, db: Session = Depends(get_db)):
    return {'success': True, 'data': _read(PlacementRepository(db).get(placement_id))}

@router.put('/{placement_id}')
def update_placement(placement_id: int, payload: PlacementUpdate, db: Session = Depends(get_db)):
    placement = PlacementRepository(db).update(placement_id, payload.model_dump(exclude_unset=True))
    return {'success': True, 'data': _read(placement), 'message': 'Placement updated successfully'}

@router.delete('/{placement_id}')
def delete_placement(placement_id: int, db: Session = Depends(get_db), storage: ObjectStore = Depends(get_storage), urls: StorageUrls = Depends(get_urls)):
    summary, keys = PlacementRepository(db).delete(placement_id)
    purge(storage, urls, keys)
    return {'success': True, 'data': summary, 'message': f'Placement "{summary["name"]}" deleted successfully'}
