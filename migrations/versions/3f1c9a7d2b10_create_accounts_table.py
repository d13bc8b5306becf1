"""Create the accounts table."""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f1c9a7d2b10"
down_revision = None
branch_labels = None
depends_on = None


ROLE_ENUM = "account_role"
STATUS_ENUM = "account_status"
REGISTRATION_METHOD_ENUM = "registration_method"


def upgrade() -> None:
    """Create accounts with lifecycle, single-use token and lockout columns."""

    role = sa.Enum("journalist", "comms", "admin", name=ROLE_ENUM)
    status = sa.Enum("pending", "active", "suspended", "rejected", name=STATUS_ENUM)
    registration_method = sa.Enum(
        "email", "endorsement", "invite", "system", name=REGISTRATION_METHOD_ENUM
    )

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(length=50), nullable=False),
        sa.Column("surname", sa.String(length=50), nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("role", role, nullable=False),
        sa.Column(
            "registration_method",
            registration_method,
            nullable=False,
            server_default=sa.text("'email'"),
        ),
        sa.Column(
            "status",
            status,
            nullable=False,
            server_default=sa.text("'pending'"),
        ),
        sa.Column("publication", sa.String(length=255), nullable=True),
        sa.Column("license_file", sa.JSON(), nullable=True),
        sa.Column("org_name", sa.String(length=255), nullable=True),
        sa.Column("position", sa.String(length=100), nullable=False),
        sa.Column("bio", sa.String(length=500), nullable=False),
        sa.Column("phone_number", sa.String(length=32), nullable=False),
        sa.Column("country", sa.String(length=50), nullable=False),
        sa.Column("interests", sa.JSON(), nullable=False),
        sa.Column(
            "is_email_verified",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("email_verification_token", sa.String(length=128), nullable=True),
        sa.Column("email_verification_expires", sa.DateTime(), nullable=True),
        sa.Column("password_reset_token", sa.String(length=128), nullable=True),
        sa.Column("password_reset_expires", sa.DateTime(), nullable=True),
        sa.Column("login_attempts", sa.Integer(), nullable=False),
        sa.Column("lock_until", sa.DateTime(), nullable=True),
        sa.Column("last_login", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("email_verification_token"),
        sa.UniqueConstraint("password_reset_token"),
    )
    op.create_index(
        "ix_accounts_role_status", "accounts", ["role", "status"], unique=False
    )


def downgrade() -> None:
    """Drop the accounts table and its enum types."""

    op.drop_index("ix_accounts_role_status", table_name="accounts")
    op.drop_table("accounts")
    bind = op.get_bind()
    for enum_name in (ROLE_ENUM, STATUS_ENUM, REGISTRATION_METHOD_ENUM):
        sa.Enum(name=enum_name).drop(bind, checkfirst=True)
