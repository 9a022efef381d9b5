"""Django management command to load policies into the casbin_rule table.

The command supports:
- Specifying the path to the Casbin policy file. Default is 'authz_permission/engine/config/authz.policy'.
- Specifying the Casbin model configuration file. Default is 'authz_permission/engine/config/model.conf'.
- Optionally clearing existing policies in the database before loading new ones.
"""

import os

import casbin
import click
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from authz_permission import ROOT_DIRECTORY
from authz_permission.engine.adapter import DatabaseAdapter
from authz_permission.engine.enforcer import PermissionManager
from authz_permission.engine.utils import migrate_policy_between_enforcers
from authz_permission.models import CasbinRule


class Command(BaseCommand):
    """Django management command to load policies into the casbin_rule table.

    Without ``--clear-existing`` the rules of the policy file that are not
    stored yet are added. With ``--clear-existing`` and confirmation, every
    stored rule is deleted and the policy file is saved as a whole.

    Example Usage:
        python manage.py load_policies --policy-file-path /path/to/authz.policy
        python manage.py load_policies --policy-file-path /path/to/authz.policy --model-file-path /path/to/model.conf
        python manage.py load_policies --clear-existing
    """

    help = "Load policies from a Casbin policy file into the casbin_rule table."

    def add_arguments(self, parser) -> None:
        """Add command-line arguments to the argument parser.

        Args:
            parser: The Django argument parser instance to configure.
        """
        parser.add_argument(
            "--policy-file-path",
            type=str,
            default=None,
            help="Path to the Casbin policy file (CSV format with policies and role assignments)",
        )
        parser.add_argument(
            "--model-file-path",
            type=str,
            default=None,
            help="Path to the Casbin model configuration file",
        )
        parser.add_argument(
            "--clear-existing",
            action="store_true",
            help="Flag to clear existing policies before loading new ones",
        )

    def handle(self, *args, **options):
        """Execute the policy loading command.

        Args:
            *args: Positional command arguments (unused).
            **options: Command options including 'policy_file_path', 'model_file_path', and 'clear_existing'.

        Raises:
            CommandError: If the policy or model file is not found.
        """
        policy_file_path, model_file_path = (
            options["policy_file_path"],
            options["model_file_path"],
        )
        if policy_file_path is None:
            policy_file_path = os.path.join(ROOT_DIRECTORY, "engine", "config", "authz.policy")
        if model_file_path is None:
            model_file_path = os.path.join(ROOT_DIRECTORY, "engine", "config", "model.conf")

        if not os.path.isfile(model_file_path):
            raise CommandError(f"Model file not found: {model_file_path}")
        if not os.path.isfile(policy_file_path):
            raise CommandError(f"Policy file not found: {policy_file_path}")

        source_enforcer = casbin.Enforcer(model_file_path, policy_file_path)

        if options.get("clear_existing") and click.confirm(
            click.style(
                "Do you want to delete every stored policy before loading the file?",
                fg="yellow",
                bold=True,
            ),
            default=False,
        ):
            self._replace_policies(source_enforcer)
            return

        manager = PermissionManager(model_file_path)
        migrate_policy_between_enforcers(source_enforcer, manager.enforcer)
        self.stdout.write(self.style.SUCCESS(f"Loaded policies from {policy_file_path}"))

    def _replace_policies(self, source_enforcer):
        """Delete every stored rule and save the source policy in its place.

        Args:
            source_enforcer: The file-based Casbin enforcer holding the new policy.
        """
        adapter = DatabaseAdapter()
        with transaction.atomic(using=adapter.db_alias):
            deleted, _ = CasbinRule.objects.using(adapter.db_alias).all().delete()
            adapter.save_policy(source_enforcer.get_model())
        click.echo(f"Deleted {deleted} stored policies")
        self.stdout.write(self.style.SUCCESS("Replaced stored policies"))
