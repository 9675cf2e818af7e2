from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision='20261018090000'
down_revision=None

Id = sa.BigInteger().with_variant(sa.Integer(), 'sqlite')
Json = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')
scene_type = sa.Enum('home', 'street', name='scene_type_enum')
theme_type = sa.Enum('city', 'occasion', name='theme_type_enum')

def _timestamps():
    return [sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()), sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())]

def upgrade():
    op.create_table('themes', sa.Column('id', Id, primary_key=True), sa.Column('theme_type', theme_type, nullable=True), sa.Column('name', sa.Text()), sa.Column('slug', sa.Text()), sa.Column('image', sa.Text()), sa.Column('metadata', Json, server_default=sa.text("'{}'")), *_timestamps())
    op.create_table('scenes', sa.Column('id', Id, primary_key=True), sa.Column('name', sa.Text()), sa.Column('type', scene_type, nullable=True), sa.Column('image', sa.Text()), sa.Column('theme_id', Id, sa.ForeignKey('themes.id', ondelete='SET NULL'), nullable=True), *_timestamps())
    op.create_table('spaces', sa.Column('id', Id, primary_key=True), sa.Column('scene_id', Id, sa.ForeignKey('scenes.id', ondelete='CASCADE'), nullable=False), sa.Column('name', sa.Text()), sa.Column('image', sa.Text()), *_timestamps())
    op.create_table('placements', sa.Column('id', Id, primary_key=True), sa.Column('space_id', Id, sa.ForeignKey('spaces.id', ondelete='CASCADE'), nullable=False), sa.Column('name', sa.Text()), *_timestamps())
    op.create_table('products', sa.Column('id', Id, primary_key=True), sa.Column('name', sa.Text()), sa.Column('image', sa.Text()), sa.Column('original_price', sa.Numeric(12, 2)), sa.Column('discount_percentage', sa.Numeric(5, 2)), *_timestamps())
    op.create_table('placement_images', sa.Column('id', Id, primary_key=True), sa.Column('placement_id', Id, sa.ForeignKey('placements.id', ondelete='CASCADE'), nullable=False), sa.Column('name', sa.Text()), sa.Column('image', sa.Text()), sa.Column('is_visible', sa.Boolean(), nullable=False, server_default=sa.false()), sa.Column('anchor_position', Json, server_default=sa.text("'{}'")), sa.Column('position', Json, server_default=sa.text("'{}'")), sa.Column('product_id', Id, sa.ForeignKey('products.id', ondelete='SET NULL'), nullable=True), *_timestamps())
    op.create_index('ix_themes_theme_type', 'themes', ['theme_type'])
    op.create_index('ix_scenes_theme_id', 'scenes', ['theme_id'])
    op.create_index('ix_spaces_scene_id', 'spaces', ['scene_id'])
    op.create_index('ix_placements_space_id', 'placements', ['space_id'])
    op.create_index('ix_placement_images_placement_id', 'placement_images', ['placement_id'])
    op.create_index('ix_placement_images_product_id', 'placement_images', ['product_id'])

def downgrade():
    op.drop_table('placement_images'); op.drop_table('products'); op.drop_table('placements'); op.drop_table('spaces'); op.drop_table('scenes'); op.drop_table('themes')
    scene_type.drop(op.get_bind(), checkfirst=True); theme_type.drop(op.get_bind(), checkfirst=True)
