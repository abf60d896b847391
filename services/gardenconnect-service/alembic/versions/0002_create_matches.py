from alembic import op
import sqlalchemy as sa

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "volunteer_id",
            sa.Integer(),
            sa.ForeignKey("volunteers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "garden_id",
            sa.Integer(),
            sa.ForeignKey("gardens.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("match_type", sa.String(), nullable=False),
        sa.Column("match_score", sa.Float(), nullable=True),
        sa.Column("match_details", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("email_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("email_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("volunteer_id", "garden_id", name="uq_matches_pair"),
    )
    op.create_index("ix_matches_volunteer_id", "matches", ["volunteer_id"])
    op.create_index("ix_matches_garden_id", "matches", ["garden_id"])
    op.create_index("ix_matches_status", "matches", ["status"])


def downgrade():
    op.drop_index("ix_matches_status", table_name="matches")
    op.drop_index("ix_matches_garden_id", table_name="matches")
    op.drop_index("ix_matches_volunteer_id", table_name="matches")
    op.drop_table("matches")
