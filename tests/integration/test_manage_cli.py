"""
Integration tests for the management CLI.
"""

import pytest
from click.testing import CliRunner

from clinic.core.security import get_user_from_token
from clinic.manage import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.mark.integration
class TestManageCli:
    def test_create_tables_is_idempotent(self, runner, fresh_database):
        assert runner.invoke(cli, ["create-tables"]).exit_code == 0
        assert runner.invoke(cli, ["create-tables"]).exit_code == 0

    def test_seed_then_next_slot(self, runner, fresh_database):
        seeded = runner.invoke(cli, ["seed-demo", "--specialization", "Pediatrics"])
        assert seeded.exit_code == 0, seeded.output

        result = runner.invoke(cli, ["next-slot", "--doctor-id", "1", "--duration", "45"])

        assert result.exit_code == 0, result.output
        # Demo doctor works weekdays, so a slot always exists within the horizon
        assert result.output.strip().endswith("+00:00")

    def test_next_slot_unknown_doctor_fails_cleanly(self, runner, fresh_database):
        result = runner.invoke(cli, ["next-slot", "--doctor-id", "77"])
        assert result.exit_code == 1
        assert "Doctor 77 not found" in result.output

    def test_issue_token(self, runner):
        result = runner.invoke(
            cli,
            [
                "issue-token",
                "--user-id",
                "12",
                "--email",
                "desk@clinic.local",
                "--role",
                "Receptionist",
                "--role",
                "Doctor",
            ],
        )

        assert result.exit_code == 0, result.output
        user = get_user_from_token(result.output.strip())
        assert user == {
            "user_id": 12,
            "email": "desk@clinic.local",
            "roles": ["Receptionist", "Doctor"],
        }

    def test_issue_token_requires_a_role(self, runner):
        result = runner.invoke(
            cli, ["issue-token", "--user-id", "1", "--email", "a@clinic.local"]
        )
        assert result.exit_code != 0

    def test_issue_token_rejects_unknown_role(self, runner):
        result = runner.invoke(
            cli,
            ["issue-token", "--user-id", "1", "--email", "a@clinic.local", "--role", "Janitor"],
        )
        assert result.exit_code == 2
