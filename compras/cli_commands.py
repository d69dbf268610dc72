"""
Flask CLI commands.

Commands:
- flask init-db: Create every table
- flask set-po-sequence: Move an account's purchase order counter
"""
import click

from compras.database import create_schema, get_session
from compras.models import Account
from compras.services.sequence_service import set_po_sequence_start


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create database tables (existing tables are left untouched)."""
        create_schema()
        click.echo(click.style('✅ Tablas creadas.', fg='green'))

    @app.cli.command('set-po-sequence')
    @click.option('--account', 'account_id', type=int, required=True, help='Account ID')
    @click.option('--start', 'start_number', type=click.IntRange(min=0), required=True,
                  help='Next order number (0 = after the highest existing order)')
    def set_po_sequence_command(account_id, start_number):
        """Set the next purchase order number of an account."""
        db_session = get_session()

        account = db_session.query(Account).filter_by(id=account_id).first()
        if not account:
            click.echo(click.style(f'❌ No existe la cuenta {account_id}.', fg='red'))
            return

        try:
            next_number = set_po_sequence_start(db_session, account_id, start_number)
            db_session.commit()
            click.echo(click.style(f'✅ Próximo número de orden para {account.name}: {next_number}', fg='green'))
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'❌ Error al actualizar la secuencia: {str(e)}', fg='red'))
