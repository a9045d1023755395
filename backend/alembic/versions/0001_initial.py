"""Initial schema: users, otp_challenges, documents, document_tags

Revision ID: 0001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('mobile_number', sa.String(16), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('password_hash', sa.String(), nullable=True),
        sa.Column('role', sa.String(16), nullable=False, server_default='user'),
        sa.Column('status', sa.String(16), nullable=False, server_default='active'),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('email', name='uq_users_email'),
    )
    op.create_index('ix_users_mobile_number', 'users', ['mobile_number'], unique=True)

    op.create_table(
        'otp_challenges',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('mobile_number', sa.String(16), nullable=False),
        sa.Column('code', sa.String(6), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_otp_challenges_mobile_number', 'otp_challenges', ['mobile_number'], unique=True)
    op.create_index('ix_otp_challenges_expires_at', 'otp_challenges', ['expires_at'])

    op.create_table(
        'documents',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('filename', sa.String(), nullable=False),
        sa.Column('original_name', sa.String(), nullable=False),
        sa.Column('file_path', sa.String(), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('mime_type', sa.String(64), nullable=False),
        sa.Column('major_head', sa.String(32), nullable=False),
        sa.Column('minor_head', sa.String(), nullable=False),
        sa.Column('document_date', sa.Date(), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('uploaded_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('upload_date', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_documents_uploaded_by', 'documents', ['uploaded_by'])
    op.create_index('ix_documents_upload_date', 'documents', ['upload_date'])
    op.create_index('ix_documents_heads', 'documents', ['major_head', 'minor_head'])

    op.create_table(
        'document_tags',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('document_id', sa.Integer(), sa.ForeignKey('documents.id', ondelete='CASCADE'), nullable=False),
        sa.Column('tag_name', sa.String(), nullable=False),
    )
    op.create_index('ix_document_tags_document_id', 'document_tags', ['document_id'])
    op.create_index('ix_document_tags_tag_name', 'document_tags', ['tag_name'])


def downgrade():
    op.drop_index('ix_document_tags_tag_name', 'document_tags')
    op.drop_index('ix_document_tags_document_id', 'document_tags')
    op.drop_table('document_tags')
    op.drop_index('ix_documents_heads', 'documents')
    op.drop_index('ix_documents_upload_date', 'documents')
    op.drop_index('ix_documents_uploaded_by', 'documents')
    op.drop_table('documents')
    op.drop_index('ix_otp_challenges_expires_at', 'otp_challenges')
    op.drop_index('ix_otp_challenges_mobile_number', 'otp_challenges')
    op.drop_table('otp_challenges')
    op.drop_index('ix_users_mobile_number', 'users')
    op.drop_table('users')
