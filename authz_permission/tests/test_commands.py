"""
Tests for the `load_policies` Django management command.
"""

import io
import os
from tempfile import NamedTemporaryFile
from unittest.mock import Mock, patch

from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from authz_permission import ROOT_DIRECTORY
from authz_permission.models import CasbinRule
from authz_permission.tests.test_utils import create_rule, stored_rules

DEFAULT_POLICY_RULES = [
    ["p", "role_admin", "data1", "read"],
    ["p", "role_admin", "data1", "write"],
    ["p", "role_admin", "data2", "read"],
    ["p", "role_admin", "data2", "write"],
    ["p", "role_reader", "data1", "read"],
    ["p", "role_reader", "data2", "read"],
    ["g", "alice", "role_admin"],
    ["g", "bob", "role_reader"],
]


class LoadPoliciesCommandTests(TestCase):
    """
    Tests for the `load_policies` Django management command.

    This test class verifies the behavior of the command, including:
    - Seeding an empty database from the bundled policy file
    - Skipping rules that are already stored
    - Replacing stored rules with --clear-existing
    - File existence checks for policy and model files
    """

    def setUp(self):
        super().setUp()
        cache.clear()
        self.buffer = io.StringIO()
        self.command_name = "load_policies"
        self.model_file_path = os.path.join(ROOT_DIRECTORY, "engine", "config", "model.conf")

    def tearDown(self):
        cache.clear()
        super().tearDown()

    def _write_policy_file(self, content: str) -> str:
        policy_file = NamedTemporaryFile("w", suffix=".policy", delete=False)  # pylint: disable=consider-using-with
        policy_file.write(content)
        policy_file.close()
        self.addCleanup(os.remove, policy_file.name)
        return policy_file.name

    def test_load_default_policy_file(self):
        """All rules of the bundled policy file are stored."""
        call_command(self.command_name, stdout=self.buffer)

        self.assertCountEqual(stored_rules(), DEFAULT_POLICY_RULES)
        self.assertIn("Loaded policies from", self.buffer.getvalue())

    def test_load_twice_does_not_duplicate(self):
        call_command(self.command_name, stdout=self.buffer)
        call_command(self.command_name, stdout=self.buffer)

        self.assertEqual(CasbinRule.objects.count(), len(DEFAULT_POLICY_RULES))

    def test_existing_rules_are_kept(self):
        create_rule("p", "carol", "data3", "read")
        policy_file_path = self._write_policy_file("p, alice, data1, read\n")

        call_command(
            self.command_name,
            policy_file_path=policy_file_path,
            model_file_path=self.model_file_path,
            stdout=self.buffer,
        )

        self.assertEqual(stored_rules(), [["p", "carol", "data3", "read"], ["p", "alice", "data1", "read"]])

    @patch("authz_permission.management.commands.load_policies.click.confirm", return_value=True)
    def test_clear_existing_replaces_stored_rules(self, mock_confirm: Mock):
        create_rule("p", "carol", "data3", "read")
        policy_file_path = self._write_policy_file("p, alice, data1, read\ng, alice, role_admin\n")

        call_command(
            self.command_name,
            policy_file_path=policy_file_path,
            clear_existing=True,
            stdout=self.buffer,
        )

        mock_confirm.assert_called_once()
        self.assertEqual(stored_rules(), [["p", "alice", "data1", "read"], ["g", "alice", "role_admin"]])
        self.assertIn("Replaced stored policies", self.buffer.getvalue())

    @patch("authz_permission.management.commands.load_policies.click.confirm", return_value=False)
    def test_clear_existing_declined_keeps_stored_rules(self, mock_confirm: Mock):
        create_rule("p", "carol", "data3", "read")
        policy_file_path = self._write_policy_file("p, alice, data1, read\n")

        call_command(
            self.command_name,
            policy_file_path=policy_file_path,
            clear_existing=True,
            stdout=self.buffer,
        )

        mock_confirm.assert_called_once()
        self.assertEqual(stored_rules(), [["p", "carol", "data3", "read"], ["p", "alice", "data1", "read"]])

    def test_policy_file_not_found_raises(self):
        non_existent_policy = "invalid/path/authz.policy"

        with self.assertRaises(CommandError) as ctx:
            call_command(self.command_name, policy_file_path=non_existent_policy)

        self.assertEqual(f"Policy file not found: {non_existent_policy}", str(ctx.exception))

    def test_model_file_not_found_raises(self):
        non_existent_model = "invalid/path/model.conf"

        with self.assertRaises(CommandError) as ctx:
            call_command(self.command_name, model_file_path=non_existent_model)

        self.assertEqual(f"Model file not found: {non_existent_model}", str(ctx.exception))
