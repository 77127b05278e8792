"""
Tests for the ghmock-drift command line interface.

Live probes are replaced with mocks; no gh binary or network is needed.
"""

import json
from unittest.mock import Mock, patch

import pytest

from ghmock.drift.cli import build_parser, main

MANIFEST_YAML = """\
fixtures:
  milestone:
    list_all:
      type: rest
      endpoint: repos/{owner}/{repo}/milestones
    created:
      type: rest
      endpoint: repos/{owner}/{repo}/milestones
      method: POST
      setup:
        - create_milestone: {title: x}
"""

STORED = [{"number": 1, "title": "v1.0"}]


@pytest.fixture
def fixtures_dir(tmp_path, monkeypatch):
    monkeypatch.delenv("GHMOCK_MANIFEST", raising=False)
    monkeypatch.delenv("GHMOCK_TEST_ORG", raising=False)
    monkeypatch.delenv("GHMOCK_TEST_REPO", raising=False)
    root = tmp_path / "fixtures"
    path = root / "rest" / "milestone" / "list_all.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps(STORED), encoding='utf-8')
    (root / "recording_manifest.yaml").write_text(MANIFEST_YAML, encoding='utf-8')
    return root


@pytest.fixture
def gh_probe():
    """Patch GhCliProbe so the CLI gets an available mock probe."""
    with patch('ghmock.drift.cli.GhCliProbe') as probe_class:
        probe = probe_class.return_value
        probe.is_available.return_value = True
        probe.return_value = STORED
        yield probe


class TestParser:
    """Test argument parsing."""

    def test_targets_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['--all', '--domain', 'milestone'])

    def test_fixture_takes_two_values(self):
        args = build_parser().parse_args(['--fixture', 'milestone', 'list_all', '--update'])
        assert args.fixture == ['milestone', 'list_all']
        assert args.update
        assert args.probe == 'gh'

    def test_unknown_probe(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['--all', '--probe', 'carrier-pigeon'])


class TestMain:
    """Test main() exit codes and output."""

    def test_no_target_prints_help(self, capsys):
        assert main([]) == 0
        assert "ghmock-drift" in capsys.readouterr().out

    @patch('shutil.which', return_value=None)
    def test_gh_missing(self, mock_which, fixtures_dir, capsys):
        assert main(['--all', '--fixtures-dir', str(fixtures_dir)]) == 1
        assert "gh CLI is required" in capsys.readouterr().err

    def test_missing_manifest(self, tmp_path, gh_probe, capsys):
        code = main(['--all', '--fixtures-dir', str(tmp_path / "nowhere")])
        assert code == 1
        assert "not found" in capsys.readouterr().err

    def test_manifest_from_environment(self, fixtures_dir, gh_probe, monkeypatch, tmp_path):
        moved = tmp_path / "elsewhere.yaml"
        moved.write_text(MANIFEST_YAML, encoding='utf-8')
        (fixtures_dir / "recording_manifest.yaml").unlink()
        monkeypatch.setenv("GHMOCK_MANIFEST", str(moved))

        assert main(['--all', '--fixtures-dir', str(fixtures_dir)]) == 0

    def test_no_drift(self, fixtures_dir, gh_probe, capsys):
        code = main(['--fixture', 'milestone', 'list_all', '--fixtures-dir', str(fixtures_dir)])

        assert code == 0
        assert "No schema drift detected" in capsys.readouterr().out
        request = gh_probe.call_args[0][0]
        assert request.endpoint == "repos/test-org/test-repo/milestones"

    def test_drift_exit_code(self, fixtures_dir, gh_probe, capsys):
        gh_probe.return_value = [{"number": 1, "title": "v1.0", "state": "open"}]

        code = main(['--domain', 'milestone', '--fixtures-dir', str(fixtures_dir), '-v'])

        out = capsys.readouterr().out
        assert code == 1
        assert "milestone/list_all" in out
        assert "+ [*].state" in out
        assert "ghmock-drift --all --update" in out

    def test_report_file(self, fixtures_dir, gh_probe, tmp_path):
        report = tmp_path / "drift_report.json"

        main(['--all', '--fixtures-dir', str(fixtures_dir), '--report', str(report)])

        data = json.loads(report.read_text(encoding='utf-8'))
        assert data['summary']['passed'] == 1
        assert data['summary']['skipped'] == 1
        assert data['drifted_fixtures'] == []

    def test_update_rewrites_fixture(self, fixtures_dir, gh_probe):
        gh_probe.return_value = [{"number": 1, "title": "v1.0", "state": "open"}]

        code = main(['--fixture', 'milestone', 'list_all', '--fixtures-dir', str(fixtures_dir), '--update'])

        assert code == 1
        stored = json.loads((fixtures_dir / "rest" / "milestone" / "list_all.json").read_text(encoding='utf-8'))
        assert stored[0]["state"] == "open"

    @patch('ghmock.drift.cli.HttpProbe')
    def test_http_probe(self, probe_class, fixtures_dir):
        probe_class.return_value = Mock(return_value=STORED)

        code = main(['--all', '--probe', 'http', '--fixtures-dir', str(fixtures_dir)])

        assert code == 0
        probe_class.assert_called_once_with()
