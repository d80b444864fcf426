# migrations/env.py
from alembic import context
from sqlalchemy import engine_from_config, pool

# (1) carregar .env antes de ler as configurações
from dotenv import load_dotenv
load_dotenv()

from app.core.config import settings
from app.db.base import Base
from app.db.session import _normalize

config = context.config

# (2) Alembic usa a mesma URL da aplicação (normalizada para psycopg)
db_url = _normalize(settings.DATABASE_URL)
config.set_main_option("sqlalchemy.url", db_url)

target_metadata = Base.metadata

def run_migrations_offline():
    url = config.get_main_option("sqlalchemy.url")
    context.configure(url=url, target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    connectable = engine_from_config(config.get_section(config.config_ini_section), prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        # batch mode: SQLite não altera constraints com ALTER TABLE
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
