"""seed photobox categories

Revision ID: 002
Revises: 001
Create Date: 2024-01-15 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
import uuid

# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None

CATEGORIES = [
    {'name': 'Photobox', 'slug': 'photobox', 'description': 'Photo boxes filled with your printed photos'},
    {'name': 'Cetak Foto', 'slug': 'cetak-foto', 'description': 'Photo prints in every size'},
    {'name': 'Album Foto', 'slug': 'album-foto', 'description': 'Photo albums and photo books'},
    {'name': 'Frame Foto', 'slug': 'frame-foto', 'description': 'Frames for printed photos'},
    {'name': 'Merchandise', 'slug': 'merchandise', 'description': 'Mugs, keychains and other printed gifts'},
]


def upgrade() -> None:
    connection = op.get_bind()

    for category in CATEGORIES:
        connection.execute(
            sa.text("""
                INSERT INTO product_categories (id, name, slug, description, is_active, created_at)
                VALUES (:id, :name, :slug, :description, true, NOW())
                ON CONFLICT (slug) DO NOTHING
            """),
            {'id': str(uuid.uuid4()), **category}
        )


def downgrade() -> None:
    connection = op.get_bind()
    connection.execute(
        sa.text("DELETE FROM product_categories WHERE slug = ANY(:slugs)"),
        {'slugs': [c['slug'] for c in CATEGORIES]}
    )
