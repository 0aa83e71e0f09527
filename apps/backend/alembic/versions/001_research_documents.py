"""Research documents read model (visibility, embargo, allow-list, storage).

Revision ID: 001_research_documents
Revises:
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001_research_documents"
down_revision: str | None = None
branch_labels: str | None = None
depends_on: str | None = None


def _text_array(name: str) -> sa.Column:
    return sa.Column(
        name,
        postgresql.ARRAY(sa.Text()),
        nullable=False,
        server_default=sa.text("'{}'::text[]"),
    )


def upgrade() -> None:
    op.create_table(
        "research_documents",
        # Ids opacos (los links firmados y el frontend los usan tal cual)
        sa.Column("id", sa.Text, primary_key=True),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column(
            "status", sa.Text, nullable=False, server_default=sa.text("'pending'")
        ),
        # Visibilidad: NULL o valor desconocido se trata como campus
        sa.Column("visibility", sa.Text, nullable=True),
        sa.Column("embargo_until", sa.DateTime(timezone=True), nullable=True),
        _text_array("allowed_viewers"),
        # Ownership (identidades e-mail)
        sa.Column("author", sa.Text, nullable=False, server_default=""),
        sa.Column("student", sa.Text, nullable=False, server_default=""),
        sa.Column("adviser", sa.Text, nullable=False, server_default=""),
        sa.Column("uploaded_by", sa.Text, nullable=False, server_default=""),
        sa.Column("uploader_role", sa.Text, nullable=False, server_default=""),
        # Metadata de catálogo
        sa.Column("abstract", sa.Text, nullable=False, server_default=""),
        _text_array("co_authors"),
        sa.Column("year", sa.Text, nullable=False, server_default=""),
        _text_array("keywords"),
        sa.Column("category", sa.Text, nullable=False, server_default=""),
        _text_array("categories"),
        _text_array("genre_tags"),
        sa.Column("landing_page_url", sa.Text, nullable=True),
        # Artefacto
        sa.Column("storage_key", sa.Text, nullable=False, server_default=""),
        sa.Column("file_name", sa.Text, nullable=False, server_default=""),
        sa.Column(
            "file_type",
            sa.Text,
            nullable=False,
            server_default=sa.text("'application/pdf'"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=True,
            server_default=sa.text("now()"),
        ),
    )

    op.create_index(
        "ix_research_documents_status_visibility",
        "research_documents",
        ["status", "visibility"],
    )
    op.create_index(
        "ix_research_documents_updated_at",
        "research_documents",
        [sa.text("updated_at DESC NULLS LAST"), "id"],
    )
    op.create_index("ix_research_documents_year", "research_documents", ["year"])
    op.create_index(
        "ix_research_documents_allowed_viewers",
        "research_documents",
        ["allowed_viewers"],
        postgresql_using="gin",
    )
    op.create_index(
        "ix_research_documents_categories",
        "research_documents",
        ["categories"],
        postgresql_using="gin",
    )
    op.create_index(
        "ix_research_documents_genre_tags",
        "research_documents",
        ["genre_tags"],
        postgresql_using="gin",
    )


def downgrade() -> None:
    op.drop_index("ix_research_documents_genre_tags", table_name="research_documents")
    op.drop_index("ix_research_documents_categories", table_name="research_documents")
    op.drop_index(
        "ix_research_documents_allowed_viewers", table_name="research_documents"
    )
    op.drop_index("ix_research_documents_year", table_name="research_documents")
    op.drop_index("ix_research_documents_updated_at", table_name="research_documents")
    op.drop_index(
        "ix_research_documents_status_visibility", table_name="research_documents"
    )
    op.drop_table("research_documents")
