import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import BigInteger, Boolean, DateTime, Enum, ForeignKey, Integer, JSON, Numeric, Text, false, func
from sqlalchemy.dialects.postgresql import JSONB
from virtual_shop.db.session import Base

# BIGSERIAL on Postgres; SQLite only autoincrements INTEGER primary keys
Id = BigInteger().with_variant(Integer(), 'sqlite')
Json = JSON().with_variant(JSONB(), 'postgresql')

class SceneType(str, enum.Enum):
    home = 'home'
    street = 'street'

class ThemeType(str, enum.Enum):
    city = 'city'
    occasion = 'occasion'

def _enum(cls, name):
    return Enum(cls, name=name, values_callable=lambda e: [m.value for m in e])

class Timestamped:
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

class Theme(Timestamped, Base):
    __tablename__='themes'
    id: Mapped[int] = mapped_column(Id, primary_key=True)
    theme_type: Mapped[Optional[ThemeType]] = mapped_column(_enum(ThemeType, 'theme_type_enum'), nullable=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(Text)
    slug: Mapped[Optional[str]] = mapped_column(Text)
    image_key: Mapped[Optional[str]] = mapped_column('image', Text)
    metadata_: Mapped[dict] = mapped_column('metadata', Json, default=dict)
    scenes = relationship('Scene', back_populates='theme', passive_deletes=True)

class Scene(Timestamped, Base):
    __tablename__='scenes'
    id: Mapped[int] = mapped_column(Id, primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(Text)
    type: Mapped[Optional[SceneType]] = mapped_column(_enum(SceneType, 'scene_type_enum'), nullable=True)
    image_key: Mapped[Optional[str]] = mapped_column('image', Text)
    theme_id: Mapped[Optional[int]] = mapped_column(Id, ForeignKey('themes.id', ondelete='SET NULL'), nullable=True, index=True)
    theme = relationship('Theme', back_populates='scenes')
    spaces = relationship('Space', back_populates='scene', cascade='all, delete-orphan', passive_deletes=True, order_by='Space.id')

class Space(Timestamped, Base):
    __tablename__='spaces'
    id: Mapped[int] = mapped_column(Id, primary_key=True)
    scene_id: Mapped[int] = mapped_column(Id, ForeignKey('scenes.id', ondelete='CASCADE'), index=True)
    name: Mapped[Optional[str]] = mapped_column(Text)
    image_key: Mapped[Optional[str]] = mapped_column('image', Text)
    scene = relationship('Scene', back_populates='spaces')
    placements = relationship('Placement', back_populates='space', cascade='all, delete-orphan', passive_deletes=True, order_by='Placement.id')

class ArtStory(Base):
    __tablename__='art_stories'
    id: Mapped[int] = mapped_column(Id, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    image_key: Mapped[Optional[str]] = mapped_column('image', Text)
    stories: Mapped[list] = mapped_column(Json, default=list)

class Placement(Timestamped, Base):
    __tablename__='placements'
    id: Mapped[int] = mapped_column(Id, primary_key=True)
    space_id: Mapped[int] = mapped_column(Id, ForeignKey('spaces.id', ondelete='CASCADE'), index=True)
    name: Mapped[Optional[str]] = mapped_column(Text)
    art_story_id: Mapped[Optional[int]] = mapped_column(Id, ForeignKey('art_stories.id', ondelete='SET NULL'), nullable=True, index=True)
    space = relationship('Space', back_populates='placements')
    art_story = relationship('ArtStory')
    images = relationship('PlacementImage', back_populates='placement', cascade='all, delete-orphan', passive_deletes=True, order_by='PlacementImage.id')

class Product(Timestamped, Base):
    __tablename__='products'
    id: Mapped[int] = mapped_column(Id, primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(Text)
    image_key: Mapped[Optional[str]] = mapped_column('image', Text)
    original_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    discount_percentage: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2))

class PlacementImage(Timestamped, Base):
    __tablename__='placement_images'
    id: Mapped[int] = mapped_column(Id, primary_key=True)
    placement_id: Mapped[int] = mapped_column(Id, ForeignKey('placements.id', ondelete='CASCADE'), index=True)
    name: Mapped[Optional[str]] = mapped_column(Text)
    image_key: Mapped[Optional[str]] = mapped_column('image', Text)
    is_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    anchor_position: Mapped[dict] = mapped_column(Json, default=dict)
    position: Mapped[dict] = mapped_column(Json, default=dict)
    product_id: Mapped[Optional[int]] = mapped_column(Id, ForeignKey('products.id', ondelete='SET NULL'), nullable=True, index=True)
    placement = relationship('Placement', back_populates='images')
    product = relationship('Product')
