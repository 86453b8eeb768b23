import click
from flask import current_app
from flask.cli import AppGroup
from tabulate import tabulate
from werkzeug.security import generate_password_hash

from .models import ROLES, User, db

users_cli = AppGroup('users', help='Manage portfolio accounts.')


def _get(username):
    user = User.query.filter_by(username=username).first()
    if user is None:
        click.echo(f'No such user: {username}', err=True)
        raise click.exceptions.Exit(1)
    return user


@users_cli.command('add')
@click.argument('username')
@click.option('--role', type=click.Choice(ROLES), default='guest', show_default=True)
@click.option('--email', default=None, help='Defaults to <username>@AUTH_EMAIL_DOMAIN.')
@click.password_option()
def add_user(username, role, email, password):
    """Create an account."""
    if User.query.filter_by(username=username).first():
        click.echo(f'User {username} already exists', err=True)
        raise click.exceptions.Exit(1)
    email = (email or f"{username}@{current_app.config['AUTH_EMAIL_DOMAIN']}").lower()
    db.session.add(User(username=username, email=email, role=role,
                        password_hash=generate_password_hash(password)))
    db.session.commit()
    click.echo(f'Created {role} {username}')


@users_cli.command('passwd')
@click.argument('username')
@click.password_option()
def change_password(username, password):
    """Change an account's password."""
    user = _get(username)
    user.password_hash = generate_password_hash(password)
    db.session.commit()
    click.echo(f'Password changed for {username}')


@users_cli.command('role')
@click.argument('username')
@click.argument('role', type=click.Choice(ROLES))
def set_role(username, role):
    """Switch an account between owner and guest."""
    user = _get(username)
    user.role = role
    db.session.commit()
    click.echo(f'{username} is now {role}')


@users_cli.command('delete')
@click.argument('username')
def delete_user(username):
    """Remove an account."""
    user = _get(username)
    db.session.delete(user)
    db.session.commit()
    click.echo(f'Deleted {username}')


@users_cli.command('list')
def list_users():
    """List all accounts."""
    rows = [(u.id, u.username, u.email or '', u.role)
            for u in User.query.order_by(User.id).all()]
    click.echo(tabulate(rows, headers=['id', 'username', 'email', 'role']))
