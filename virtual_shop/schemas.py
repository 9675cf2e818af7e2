from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator
from typing import Any, Dict, List, Literal, Optional, Union
from virtual_shop.db.models import SceneType, ThemeType

def required_name(v):
    if v is None or not str(v).strip():
        raise ValueError('Name is required and must be a non-empty string')
    return str(v).strip()

def optional_name(v):
    return v if v is None else required_name(v)

def required_title(v):
    if v is None or not str(v).strip():
        raise ValueError('Title is required')
    return str(v).strip()

def optional_title(v):
    return v if v is None else required_title(v)

class ImageRef(BaseModel):
    """Adds ``image_url`` resolved from ``image_key``.

    Validate with ``context={'urls': StorageUrls}`` to fill it in.
    """
    image_key: Optional[str] = None
    image_url: Optional[str] = None

    @model_validator(mode='after')
    def resolve_image(self, info: ValidationInfo):
        urls = (info.context or {}).get('urls')
        if urls is not None:
            self.image_url = urls.resolve(self.image_key)
        return self

class Point(BaseModel):
    x: float = 0
    y: float = 0

class Box(Point):
    width: float = 100
    height: float = 100

# themes
class ThemeCreate(BaseModel):
    name: str
    theme_type: Optional[ThemeType] = None
    slug: Optional[str] = None
    image_key: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    check_name = field_validator('name', mode='before')(required_name)
class ThemeUpdate(BaseModel):
    name: Optional[str] = None
    theme_type: Optional[ThemeType] = None
    slug: Optional[str] = None
    image_key: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    check_name = field_validator('name', mode='before')(optional_name)
class ThemeRead(ImageRef):
    id: int
    theme_type: Optional[ThemeType] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias='metadata_')
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config: from_attributes = True

    @field_validator('metadata', mode='before')
    @classmethod
    def metadata_default(cls, v):
        return v or {}

# scenes
class SceneCreate(BaseModel):
    name: str
    type: Optional[SceneType] = None
    image_key: Optional[str] = None
    theme_id: Optional[int] = None
    check_name = field_validator('name', mode='before')(required_name)
class SceneUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[SceneType] = None
    image_key: Optional[str] = None
    theme_id: Optional[int] = None
    check_name = field_validator('name', mode='before')(optional_name)
class SceneRead(ImageRef):
    id: int
    name: Optional[str] = None
    type: Optional[SceneType] = None
    theme_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config: from_attributes = True

# spaces
class SpaceCreate(BaseModel):
    scene_id: int
    name: str
    image_key: Optional[str] = None
    check_name = field_validator('name', mode='before')(required_name)
class SpaceUpdate(BaseModel):
    name: Optional[str] = None
    image_key: Optional[str] = None
    check_name = field_validator('name', mode='before')(optional_name)
class SpaceRead(ImageRef):
    id: int
    scene_id: int
    name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config: from_attributes = True

# placements
class PlacementCreate(BaseModel):
    space_id: int
    name: str
    art_story_id: Optional[int] = None
    check_name = field_validator('name', mode='before')(required_name)
class PlacementUpdate(BaseModel):
    name: Optional[str] = None
    art_story_id: Optional[int] = None
    check_name = field_validator('name', mode='before')(optional_name)
class PlacementRead(BaseModel):
    id: int
    space_id: int
    name: Optional[str] = None
    art_story_id: Optional[int] = None
    art_story_title: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config: from_attributes = True

# placement images
class PlacementImageCreate(BaseModel):
    placement_id: int
    name: str
    image_key: str = Field(min_length=1)
    is_visible: bool = False
    anchor_position: Optional[Point] = None
    position: Optional[Box] = None
    product_id: Optional[int] = None
    check_name = field_validator('name', mode='before')(required_name)
class PlacementImageUpdate(BaseModel):
    name: Optional[str] = None
    image_key: Optional[str] = None
    is_visible: Optional[bool] = None
    anchor_position: Optional[Point] = None
    position: Optional[Box] = None
    product_id: Optional[int] = None
    check_name = field_validator('name', mode='before')(optional_name)
class PlacementImageRead(ImageRef):
    id: int
    placement_id: int
    name: Optional[str] = None
    is_visible: bool = False
    anchor_position: Dict[str, Any] = Field(default_factory=dict)
    position: Dict[str, Any] = Field(default_factory=dict)
    product_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config: from_attributes = True

    @field_validator('anchor_position', 'position', mode='before')
    @classmethod
    def json_default(cls, v):
        return v or {}
class SetActiveImage(BaseModel):
    placement_id: int
    active_placement_image_id: int

# products
class ProductCreate(BaseModel):
    name: str
    image_key: Optional[str] = None
    original_price: Optional[Decimal] = Field(default=None, ge=0)
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    check_name = field_validator('name', mode='before')(required_name)
class ProductUpdate(BaseModel):
    name: Optional[str] = None
    image_key: Optional[str] = None
    original_price: Optional[Decimal] = Field(default=None, ge=0)
    discount_percentage: Optional[Decimal] = Field(default=None, ge=0, le=100)
    check_name = field_validator('name', mode='before')(optional_name)
class ProductRead(ImageRef):
    id: int
    name: Optional[str] = None
    original_price: Optional[float] = None
    discount_percentage: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    class Config: from_attributes = True

# art stories
class StoryMedia(BaseModel):
    type: Literal['image', 'video']
    s3Key: str
    url: Optional[str] = None

    @model_validator(mode='after')
    def resolve_url(self, info: ValidationInfo):
        urls = (info.context or {}).get('urls')
        if urls is not None:
            self.url = urls.resolve(self.s3Key)
        return self
class StoryItem(BaseModel):
    id: Union[int, str]
    title: str = ''
    description: str = ''
    media: Optional[StoryMedia] = None
class ArtStoryCreate(BaseModel):
    title: str
    image_key: Optional[str] = None
    stories: List[StoryItem] = Field(default_factory=list)

    check_title = field_validator('title', mode='before')(required_title)
class ArtStoryUpdate(ArtStoryCreate):
    title: Optional[str] = None
    stories: Optional[List[StoryItem]] = None

    check_title = field_validator('title', mode='before')(optional_title)
class ArtStoryRead(ImageRef):
    id: int
    title: str
    stories: List[StoryItem] = Field(default_factory=list)
    class Config: from_attributes = True

    @field_validator('stories', mode='before')
    @classmethod
    def stories_default(cls, v):
        return v or []

# asset manager
class BatchAssets(BaseModel):
    action: Literal['delete', 'copy']
    keys: List[str] = Field(min_length=1)
    targetPrefix: Optional[str] = None
