from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision='20261018100000'
down_revision='20261018090000'

Id = sa.BigInteger().with_variant(sa.Integer(), 'sqlite')
Json = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')

def upgrade():
    op.create_table('art_stories', sa.Column('id', Id, primary_key=True), sa.Column('title', sa.Text(), nullable=False), sa.Column('image', sa.Text()), sa.Column('stories', Json, server_default=sa.text("'[]'")))
    with op.batch_alter_table('placements') as batch:
        batch.add_column(sa.Column('art_story_id', Id, nullable=True))
        batch.create_foreign_key('fk_placements_art_story_id', 'art_stories', ['art_story_id'], ['id'], ondelete='SET NULL')
        batch.create_index('ix_placements_art_story_id', ['art_story_id'])

def downgrade():
    with op.batch_alter_table('placements') as batch:
        batch.drop_index('ix_placements_art_story_id')
        batch.drop_constraint('fk_placements_art_story_id', type_='foreignkey')
        batch.drop_column('art_story_id')
    op.drop_table('art_stories')
