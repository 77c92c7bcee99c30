"""Tests for the command line interface."""

import pytest
from typer.testing import CliRunner

from oauthkit.cli.main_cli import app
from oauthkit.storage.sqlite_base import close_sqlite_db_connection

runner = CliRunner()


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "cli.sqlite3")
    yield path
    close_sqlite_db_connection(path)


class TestSign:
    """Tests for the sign command."""

    def test_photos_example(self):
        result = runner.invoke(app, [
            "sign", "GET", "http://photos.example.net/photos?file=vacation.jpg&size=original",
            "--consumer-key", "dpf43f3p2l4k3l03",
            "--consumer-secret", "kd94hf93k423kf44",
            "--token", "nnch734d00sl2jdk",
            "--token-secret", "pfkkdhi9sl3r4s00",
            "--timestamp", "1191242096",
            "--nonce", "kllo9940pd9333jh",
        ])
        assert result.exit_code == 0, result.output
        assert "Signature: tR3+Ty81lMeYAr/Fid0kMTYa/WM=" in result.output
        assert 'oauth_signature="tR3%2BTy81lMeYAr%2FFid0kMTYa%2FWM%3D"' in result.output
        assert "Base string: GET&http%3A%2F%2Fphotos.example.net%2Fphotos&file%3Dvacation.jpg" in result.output

    def test_plaintext(self):
        result = runner.invoke(app, [
            "sign", "POST", "https://photos.example.net/request_token",
            "--consumer-key", "ck", "--consumer-secret", "cs&x", "--signature-method", "PLAINTEXT",
        ])
        assert result.exit_code == 0, result.output
        assert "Signature: cs%26x&" in result.output

    def test_unsupported_method(self):
        result = runner.invoke(app, [
            "sign", "GET", "http://example.com/", "--consumer-key", "ck", "--signature-method", "RSA-SHA1",
        ])
        assert result.exit_code == 1

    def test_malformed_param(self):
        result = runner.invoke(app, ["sign", "GET", "http://example.com/", "--consumer-key", "ck", "-p", "novalue"])
        assert result.exit_code == 1


class TestParseHeader:

    def test_problem_header(self):
        result = runner.invoke(app, [
            "parse-header", 'OAuth realm="Photos", oauth_problem="parameter_absent", oauth_parameters_absent="oauth_nonce"',
        ])
        assert result.exit_code == 0, result.output
        assert "realm=Photos" in result.output
        assert "Problem: parameter_absent" in result.output

    def test_not_an_oauth_header(self):
        result = runner.invoke(app, ["parse-header", "Basic dXNlcjpwYXNz"])
        assert result.exit_code == 1


class TestKeygen:

    def test_keygen(self):
        result = runner.invoke(app, ["keygen"])
        assert result.exit_code == 0
        assert "consumer_key=" in result.output
        assert "consumer_secret=" in result.output


class TestConsumerCommands:
    """Tests for the consumer registry commands."""

    def test_lifecycle(self, db_path):
        result = runner.invoke(app, ["consumer", "add", "--key", "printer", "--secret", "s3", "--name", "Printer",
                                     "--db-path", db_path])
        assert result.exit_code == 0, result.output
        assert "consumer_secret=s3" in result.output

        duplicate = runner.invoke(app, ["consumer", "add", "--key", "printer", "--db-path", db_path])
        assert duplicate.exit_code == 1

        result = runner.invoke(app, ["consumer", "set-status", "printer", "temporarily_disabled", "--db-path", db_path])
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["consumer", "get", "printer", "--db-path", db_path])
        assert "status=temporarily_disabled" in result.output
        assert "s3" not in result.output

        assert runner.invoke(app, ["consumer", "remove", "printer", "--db-path", db_path]).exit_code == 0
        assert runner.invoke(app, ["consumer", "get", "printer", "--db-path", db_path]).exit_code == 1

    def test_generated_credentials(self, db_path):
        result = runner.invoke(app, ["consumer", "add", "--db-path", db_path])
        assert result.exit_code == 0, result.output
        assert "consumer_key=" in result.output
