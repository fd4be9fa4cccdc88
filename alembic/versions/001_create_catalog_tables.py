"""Create categories, sub_categories and items tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _common_columns() -> list[sa.Column]:
    """Columns every catalog table carries."""
    return [
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('image_store_id', sa.String(255), nullable=False),
        sa.Column('image_url', sa.String(1000), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()'), index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    ]


def upgrade() -> None:
    """Create the catalog tables."""
    # Categories: names are globally unique
    op.create_table(
        'categories',
        *_common_columns(),
        sa.Column('tax_applicability', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('tax', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('tax_type', sa.String(20), nullable=False, server_default='none'),
    )
    op.create_unique_constraint('uq_categories_name', 'categories', ['name'])

    # Sub-categories: tax copied from the category at creation
    op.create_table(
        'sub_categories',
        *_common_columns(),
        sa.Column('category_id', sa.String(36),
                  sa.ForeignKey('categories.id'), nullable=False, index=True),
        sa.Column('tax_applicability', sa.Boolean(), nullable=True),
        sa.Column('tax', sa.Numeric(12, 2), nullable=True),
        sa.Column('tax_type', sa.String(20), nullable=True),
    )
    op.create_index('ix_sub_categories_name', 'sub_categories', ['name'])

    # Items
    op.create_table(
        'items',
        *_common_columns(),
        sa.Column('tax_applicability', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('tax', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('tax_type', sa.String(20), nullable=False, server_default='none'),
        sa.Column('base_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('discount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('category_id', sa.String(36),
                  sa.ForeignKey('categories.id'), nullable=False, index=True),
        sa.Column('sub_category_id', sa.String(36),
                  sa.ForeignKey('sub_categories.id'), nullable=True, index=True),
    )
    op.create_index('ix_items_name', 'items', ['name'])


def downgrade() -> None:
    """Drop the catalog tables."""
    op.drop_index('ix_items_name', table_name='items')
    op.drop_table('items')
    op.drop_index('ix_sub_categories_name', table_name='sub_categories')
    op.drop_table('sub_categories')
    op.drop_table('categories')
