"""
Create weather cache, farming alert and farmer tables.

Revision ID: 001_weather_tables
Revises:
Create Date: 2026-10-19

1. farmers: localização cadastrada de cada agricultor
2. weather_cache: camada durável do cache de previsão (JSONB)
3. weather_alerts: alertas agrícolas derivados da previsão

As linhas de weather_cache e weather_alerts não expiram sozinhas no
PostgreSQL; a tarefa Celery `weather.purge_expired_cache` remove as
vencidas a cada 15 minutos.
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "001_weather_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "farmers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column(
            "latitude", sa.Float(), nullable=True, comment="Farm latitude"
        ),
        sa.Column(
            "longitude", sa.Float(), nullable=True, comment="Farm longitude"
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    op.create_table(
        "weather_cache",
        sa.Column(
            "location_key",
            sa.String(32),
            primary_key=True,
            comment="Quantized 'lat,lon' key",
        ),
        sa.Column(
            "latitude", sa.Float(), nullable=False, comment="Latitude (degrees)"
        ),
        sa.Column(
            "longitude",
            sa.Float(),
            nullable=False,
            comment="Longitude (degrees)",
        ),
        sa.Column(
            "payload",
            postgresql.JSONB(),
            nullable=False,
            comment="Serialized forecast result",
        ),
        sa.Column(
            "cached_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
            comment="Provider fetch time",
        ),
        sa.Column(
            "expires_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="Purge after",
        ),
    )
    op.create_index(
        "idx_weather_cache_expires_at", "weather_cache", ["expires_at"]
    )

    op.create_table(
        "weather_alerts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            nullable=False,
            comment="Farmer id (farmers.id)",
        ),
        sa.Column(
            "alert_type", sa.String(32), nullable=False, comment="Alert category"
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column(
            "severity", sa.String(16), nullable=False, comment="Alert severity"
        ),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column(
            "is_active",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_weather_alerts_user_id", "weather_alerts", ["user_id"]
    )
    op.create_index(
        "idx_weather_alert_user_active",
        "weather_alerts",
        ["user_id", "is_active"],
    )
    op.create_index(
        "idx_weather_alert_expires_at", "weather_alerts", ["expires_at"]
    )


def downgrade() -> None:
    op.drop_index("idx_weather_alert_expires_at", table_name="weather_alerts")
    op.drop_index("idx_weather_alert_user_active", table_name="weather_alerts")
    op.drop_index("ix_weather_alerts_user_id", table_name="weather_alerts")
    op.drop_table("weather_alerts")

    op.drop_index("idx_weather_cache_expires_at", table_name="weather_cache")
    op.drop_table("weather_cache")

    op.drop_table("farmers")
