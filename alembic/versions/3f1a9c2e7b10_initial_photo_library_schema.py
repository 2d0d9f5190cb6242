"""Initial photo library schema

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2026-10-18 10:12:31.508114

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB


# revision identifiers, used by Alembic.
revision: str = '3f1a9c2e7b10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade() -> None:
    # Create profiles table (id is the identity provider's user id)
    op.create_table(
        'profiles',
        sa.Column('id', UUID(as_uuid=True), primary_key=True),
        sa.Column('display_name', sa.String(255), nullable=True),
        *_timestamps(),
    )

    # Create storage_objects table
    op.create_table(
        'storage_objects',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('bucket', sa.String(100), nullable=False),
        sa.Column('object_key', sa.String(500), nullable=False),
        sa.Column('checksum_sha256', sa.String(64), nullable=False),
        sa.Column('byte_size', sa.BigInteger(), nullable=False),
        sa.Column('mime_type', sa.String(50), nullable=False),
        sa.Column('width', sa.Integer(), nullable=True),
        sa.Column('height', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('bucket', 'object_key', name='uq_storage_objects_bucket_key'),
    )
    op.create_index('ix_storage_objects_user_id', 'storage_objects', ['user_id'])

    # Create folders table
    op.create_table(
        'folders',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('parent_id', UUID(as_uuid=True), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['parent_id'], ['folders.id']),
    )
    op.create_index('ix_folders_user_id', 'folders', ['user_id'])
    op.create_index('ix_folders_parent_id', 'folders', ['parent_id'])
    op.create_index('ix_folders_deleted_at', 'folders', ['deleted_at'])

    # Create photos table
    op.create_table(
        'photos',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('folder_id', UUID(as_uuid=True), nullable=True),
        sa.Column('title', sa.String(255), nullable=False, server_default='Untitled'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('favorite', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('rating', sa.Integer(), nullable=True),
        sa.Column('captured_date', sa.Date(), nullable=True),
        sa.Column('assigned_date', sa.Date(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['folder_id'], ['folders.id']),
        sa.CheckConstraint('rating IS NULL OR (rating >= 0 AND rating <= 5)', name='check_photo_rating_range'),
    )
    op.create_index('ix_photos_user_id', 'photos', ['user_id'])
    op.create_index('ix_photos_folder_id', 'photos', ['folder_id'])
    op.create_index('ix_photos_deleted_at', 'photos', ['deleted_at'])

    # Create photo_versions table
    op.create_table(
        'photo_versions',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('photo_id', UUID(as_uuid=True), nullable=False),
        sa.Column('storage_object_id', UUID(as_uuid=True), nullable=False),
        sa.Column('is_original', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('parent_version_id', UUID(as_uuid=True), nullable=True),
        sa.Column('label', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['photo_id'], ['photos.id']),
        sa.ForeignKeyConstraint(['storage_object_id'], ['storage_objects.id']),
        sa.ForeignKeyConstraint(['parent_version_id'], ['photo_versions.id']),
    )
    op.create_index('ix_photo_versions_user_id', 'photo_versions', ['user_id'])
    op.create_index('ix_photo_versions_photo_id', 'photo_versions', ['photo_id'])
    op.create_index('ix_photo_versions_deleted_at', 'photo_versions', ['deleted_at'])
    # One live original per photo
    op.create_index(
        'uq_photo_versions_one_original',
        'photo_versions',
        ['photo_id'],
        unique=True,
        postgresql_where=sa.text('is_original AND deleted_at IS NULL'),
    )

    # Create enhancement_jobs table
    op.create_table(
        'enhancement_jobs',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('photo_id', UUID(as_uuid=True), nullable=False),
        sa.Column('input_version_id', UUID(as_uuid=True), nullable=False),
        sa.Column('output_version_id', UUID(as_uuid=True), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='queued'),
        sa.Column('model_name', sa.String(100), nullable=False),
        sa.Column('model_version', sa.String(100), nullable=True),
        sa.Column('parameters', JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('queued_at', sa.DateTime(), nullable=False, server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('finished_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['photo_id'], ['photos.id']),
        sa.ForeignKeyConstraint(['input_version_id'], ['photo_versions.id']),
        sa.ForeignKeyConstraint(['output_version_id'], ['photo_versions.id']),
        sa.CheckConstraint(
            "status IN ('queued', 'running', 'succeeded', 'failed')",
            name='check_enhancement_job_status',
        ),
        sa.CheckConstraint(
            "status != 'succeeded' OR output_version_id IS NOT NULL",
            name='check_succeeded_job_has_output',
        ),
        sa.CheckConstraint(
            "status != 'failed' OR (error_message IS NOT NULL AND output_version_id IS NULL)",
            name='check_failed_job_has_error',
        ),
    )
    op.create_index('ix_enhancement_jobs_user_id', 'enhancement_jobs', ['user_id'])
    op.create_index('ix_enhancement_jobs_photo_id', 'enhancement_jobs', ['photo_id'])
    op.create_index('ix_enhancement_jobs_status', 'enhancement_jobs', ['status'])
    op.create_index('ix_enhancement_jobs_queued_at', 'enhancement_jobs', ['queued_at'])

    # Create tags and photo_tags tables
    op.create_table(
        'tags',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'name', name='uq_tags_user_name'),
    )
    op.create_index('ix_tags_user_id', 'tags', ['user_id'])
    op.create_index('ix_tags_name', 'tags', ['name'])

    op.create_table(
        'photo_tags',
        sa.Column('photo_id', UUID(as_uuid=True), nullable=False),
        sa.Column('tag_id', UUID(as_uuid=True), nullable=False),
        sa.PrimaryKeyConstraint('photo_id', 'tag_id'),
        sa.ForeignKeyConstraint(['photo_id'], ['photos.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['tag_id'], ['tags.id'], ondelete='CASCADE'),
    )

    # Create comments table
    op.create_table(
        'comments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('photo_id', UUID(as_uuid=True), nullable=False),
        sa.Column('version_id', UUID(as_uuid=True), nullable=True),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['photo_id'], ['photos.id']),
        sa.ForeignKeyConstraint(['version_id'], ['photo_versions.id']),
    )
    op.create_index('ix_comments_user_id', 'comments', ['user_id'])
    op.create_index('ix_comments_photo_id', 'comments', ['photo_id'])
    op.create_index('ix_comments_deleted_at', 'comments', ['deleted_at'])


def downgrade() -> None:
    # Drop tables in reverse order to respect foreign key constraints
    op.drop_table('comments')
    op.drop_table('photo_tags')
    op.drop_table('tags')
    op.drop_table('enhancement_jobs')
    op.drop_index('uq_photo_versions_one_original', table_name='photo_versions')
    op.drop_table('photo_versions')
    op.drop_table('photos')
    op.drop_table('folders')
    op.drop_table('storage_objects')
    op.drop_table('profiles')
