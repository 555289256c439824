import typer
import uuid

from typer import Option

from core.errors import SchemaError
from core.logging_config import setup_logging

app = typer.Typer()


def _store(db):
    from services.field_schema_store import FieldSchemaStore
    from services.schema_persistence import DatabaseSchemaPersistence, DatabaseTableCatalog

    return FieldSchemaStore(DatabaseSchemaPersistence(db), DatabaseTableCatalog(db))


def _section_label(group_name):
    from core.settings import settings

    return group_name or settings.DEFAULT_SECTION_NAME


@app.command()
def init_db():
    """Create the schema tables in the configured database."""
    from db.session import init_db as create_tables

    setup_logging()
    create_tables()
    typer.echo("Database tables created")


@app.command()
def list_fields(table_id: str = Option(..., "--table-id")):
    """Print the fields of a table in display order."""
    from db.session import db_context

    setup_logging()
    with db_context() as db:
        try:
            fields = _store(db).list_fields(uuid.UUID(table_id))
        except SchemaError as e:
            typer.echo(f"Error: {e.message}", err=True)
            raise typer.Exit(code=1)

        for field in fields:
            typer.echo(
                f"{field.order_index if field.order_index is not None else '-':>3}  "
                f"{_section_label(field.group_name):<20} {field.name:<30} {field.type}"
            )


@app.command()
def move_field(
    field_id: str = Option(..., "--field-id"),
    section: str = Option(None, "--section", help="Target section; omit to stay in the current one"),
    before: str = Option(None, "--before", help="Id of the field to insert before"),
):
    """Move a field within or across sections."""
    from db.session import db_context
    from services.field_schema_store import SAME_SECTION

    setup_logging()
    with db_context() as db:
        try:
            plan = _store(db).move_field(
                uuid.UUID(field_id),
                target_group=section if section is not None else SAME_SECTION,
                before_field_id=uuid.UUID(before) if before else None,
            )
        except SchemaError as e:
            typer.echo(f"Error: {e.message}", err=True)
            raise typer.Exit(code=1)

    typer.echo(f"Moved to index {plan.target_index} ({len(plan.updates)} field(s) updated)")


if __name__ == "__main__":
    app()
