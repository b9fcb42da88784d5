"""
End-to-end tests for the bvc CLI.

Every invocation gets an AppContext with a pinned clock, a private home
directory, an explicit environment and the in-process fakes.
"""

import json

import pytest
from typer.testing import CliRunner

from bvc.checkpoint import bundle_entry, encode_bundle
from bvc.config import UserConfig
from bvc.core.clock import FixedClock
from bvc.store import RepositoryStore
from bvc_cli import __version__
from bvc_cli.context import AppContext
from bvc_cli.main import app

from .fakes import FakeContentStore, FakeLedger, write_file

REMOTE_ENV = {
    "BVC_PRIVATE_KEY": "0x" + "1" * 64,
    "BVC_NETWORK": "localhost",
    "BVC_CONTRACT_ADDRESS": "0x5FbDB2315678afecb367f032d93F642f64180aa3",
    "BVC_AUTHOR": "alice",
}


class Cli:
    def __init__(self, tmp_path):
        self.runner = CliRunner()
        self.root = tmp_path
        self.home = tmp_path / "home"
        self.home.mkdir()
        self.clock = FixedClock()
        self.ledger = FakeLedger()
        self.content = FakeContentStore()
        self.env = {}

    def __call__(self, *args, cwd=None, input=None):
        ctx = AppContext(
            cwd=cwd or self.root,
            clock=self.clock,
            home=self.home,
            env=self.env,
            content_factory=lambda config: self.content,
            ledger_factory=lambda config: self.ledger,
        )
        return self.runner.invoke(app, list(args), obj=ctx, input=input)

    def repo(self, name="proj"):
        return self.root / name

    def store(self, name="proj"):
        return RepositoryStore(self.repo(name))


@pytest.fixture
def cli(tmp_path):
    return Cli(tmp_path)


@pytest.fixture
def remote_cli(cli):
    cli.env = dict(REMOTE_ENV)
    return cli


def _local_repo(cli, name="proj"):
    result = cli("init", name, "--local-only")
    assert result.exit_code == 0, result.output
    return cli.repo(name)


def test_version(cli):
    result = cli("--version")
    assert result.exit_code == 0
    assert __version__ in result.output


def test_init_local_only(cli):
    result = cli("init", "proj", "--local-only", "-d", "Smart contracts")
    assert result.exit_code == 0, result.output
    assert "Local only" in result.output

    config = cli.store().load_config()
    assert config.name == "proj"
    assert config.repo_id == ""
    assert config.description == "Smart contracts"
    assert (cli.repo() / "README.md").is_file()
    assert (cli.repo() / ".bvcignore").is_file()


def test_init_existing_directory(cli):
    _local_repo(cli)
    result = cli("init", "proj", "--local-only")
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_init_invalid_name(cli):
    result = cli("init", "a/b", "--local-only")
    assert result.exit_code == 2


def test_init_remote_without_configuration(cli):
    result = cli("init", "proj")
    assert result.exit_code == 1
    assert "Private key not configured" in result.output
    assert "--local-only" in result.output
    assert not cli.repo().exists()


def test_init_remote(remote_cli):
    result = remote_cli("init", "proj")
    assert result.exit_code == 0, result.output
    repo_id = remote_cli.store().load_config().repo_id
    assert repo_id in remote_cli.ledger.repos
    assert remote_cli.store().load_config().author == "alice"


def test_init_upgrade(remote_cli):
    repo = _local_repo(remote_cli)
    result = remote_cli("init", "--upgrade", cwd=repo)
    assert result.exit_code == 0, result.output
    assert remote_cli.store().load_config().repo_id in remote_cli.ledger.repos

    again = remote_cli("init", "--upgrade", cwd=repo)
    assert again.exit_code == 1
    assert "already on the ledger" in again.output


def test_commands_outside_repository(cli):
    result = cli("status")
    assert result.exit_code == 1
    assert "Not a BVC repository" in result.output
    assert "bvc init" in result.output


def test_add_commit_status_log(cli):
    repo = _local_repo(cli)
    write_file(repo, "src/token.sol", "contract Token {}")

    result = cli("add", "README.md", "src", cwd=repo)
    assert result.exit_code == 0, result.output
    assert "Staged 2 file(s)" in result.output

    status = json.loads(cli("status", "--json", cwd=repo).output)
    assert status["staged"] == ["README.md", "src/token.sol"]
    assert status["head"] is None

    result = cli("commit", "-m", "Initial commit", cwd=repo)
    assert result.exit_code == 0, result.output
    head = cli.store().head()
    assert head.short_id in result.output
    assert head.message == "Initial commit"

    result = cli("status", cwd=repo)
    assert "working tree clean" in result.output

    log = json.loads(cli("log", "--json", cwd=repo).output)
    assert log["count"] == 1
    assert log["commits"][0]["commitId"] == head.commit_id


def test_add_missing_path(cli):
    repo = _local_repo(cli)
    write_file(repo, "a.txt", "A")

    partial = cli("add", "a.txt", "nope.txt", cwd=repo)
    assert partial.exit_code == 0
    assert "File not found: nope.txt" in partial.output

    missing = cli("add", "nope.txt", cwd=repo)
    assert missing.exit_code == 1
    assert "No files staged" in missing.output


def test_add_requires_paths(cli):
    repo = _local_repo(cli)
    assert cli("add", cwd=repo).exit_code == 2


def test_add_all(cli):
    repo = _local_repo(cli)
    write_file(repo, "a.txt", "A")
    result = cli("add", "--all", cwd=repo)
    assert result.exit_code == 0, result.output
    assert {f.path for f in cli.store().load_staging()} == {"README.md", "a.txt"}


def test_commit_with_empty_staging(cli):
    repo = _local_repo(cli)
    result = cli("commit", "-m", "nothing", cwd=repo)
    assert result.exit_code == 1
    assert "Nothing to commit" in result.output
    assert "bvc add" in result.output


def test_commit_blank_message(cli):
    repo = _local_repo(cli)
    assert cli("commit", "-m", "  ", cwd=repo).exit_code == 2


def test_commit_message_prompt(cli):
    repo = _local_repo(cli)
    cli("add", "README.md", cwd=repo)
    result = cli("commit", cwd=repo, input="Prompted message\n")
    assert result.exit_code == 0, result.output
    assert cli.store().head().message == "Prompted message"


def test_commit_amend(cli):
    repo = _local_repo(cli)
    cli("add", "README.md", cwd=repo)
    cli("commit", "-m", "tyop", cwd=repo)
    result = cli("commit", "--amend", "-m", "typo", cwd=repo)
    assert result.exit_code == 0, result.output

    commits = cli.store().load_commits()
    assert len(commits) == 1
    assert commits[0].message == "typo"
    assert commits[0].amended
    assert cli("log", "--verify", cwd=repo).exit_code == 0


def test_commit_remote_on_local_only_repository(cli):
    repo = _local_repo(cli)
    cli("add", "README.md", cwd=repo)
    result = cli("commit", "-m", "local", "--remote", cwd=repo)
    assert result.exit_code == 0, result.output
    assert "Local-only" in result.output
    assert not cli.store().head().anchored


def test_commit_remote_without_configuration_warns(remote_cli):
    remote_cli("init", "proj")
    remote_cli.env = {}
    repo = remote_cli.repo()
    remote_cli("add", "README.md", cwd=repo)

    result = remote_cli("commit", "-m", "offline", "--remote", cwd=repo)
    assert result.exit_code == 0, result.output
    assert "Commit will stay local" in result.output
    assert not remote_cli.store().head().anchored


def test_log_verify_valid_chain(cli):
    repo = _local_repo(cli)
    for n in range(2):
        write_file(repo, f"f{n}.txt", str(n))
        cli("add", f"f{n}.txt", cwd=repo)
        cli("commit", "-m", f"commit {n}", cwd=repo)

    result = cli("log", "--verify", cwd=repo)
    assert result.exit_code == 0, result.output
    assert "Chain verified (2 commits)" in result.output

    data = json.loads(cli("log", "--verify", "--json", cwd=repo).output)
    assert data["verification"] == {"valid": True, "length": 2, "errors": []}


def test_log_verify_detects_tampering(cli):
    repo = _local_repo(cli)
    for n in range(2):
        write_file(repo, f"f{n}.txt", str(n))
        cli("add", f"f{n}.txt", cwd=repo)
        cli("commit", "-m", f"commit {n}", cwd=repo)

    store = cli.store()
    commits = store.load_commits()
    commits[0] = commits[0].with_changes(message="rewritten")
    store.save_commits(commits)

    result = cli("log", "--verify", cwd=repo)
    assert result.exit_code == 1
    assert "verification failed" in result.output


def test_log_limit(cli):
    repo = _local_repo(cli)
    for n in range(3):
        write_file(repo, f"f{n}.txt", str(n))
        cli("add", f"f{n}.txt", cwd=repo)
        cli("commit", "-m", f"commit {n}", cwd=repo)

    data = json.loads(cli("log", "--json", "-n", "2", cwd=repo).output)
    assert [c["message"] for c in data["commits"]] == ["commit 2", "commit 1"]
    assert cli("log", "--limit", "0", cwd=repo).exit_code == 2


def test_checkpoint_dry_run(cli):
    repo = _local_repo(cli)
    for n in range(3):
        write_file(repo, f"f{n}.txt", str(n))
        cli("add", f"f{n}.txt", cwd=repo)
        cli("commit", "-m", f"commit {n}", cwd=repo)

    result = cli("checkpoint", "--dry-run", "--json", cwd=repo)
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["commit_count"] == 3
    assert data["individual_gas"] == 360_000
    assert data["checkpoint_gas"] == 180_000
    assert data["savings_percent"] == 50.0
    assert cli.store().load_checkpoints() == []
    assert cli.content.uploads == []


def test_checkpoint_dry_run_gas_price(cli):
    repo = _local_repo(cli)
    cli("add", "README.md", cwd=repo)
    cli("commit", "-m", "one", cwd=repo)

    result = cli("checkpoint", "--dry-run", "--gas-price", "10", "--json", cwd=repo)
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["gas_price_gwei"] == 10.0
    assert data["individual_eth"] == pytest.approx(0.0012)
    assert data["saved_gas"] == -60_000


def test_checkpoint_local_only(cli):
    repo = _local_repo(cli)
    cli("add", "README.md", cwd=repo)
    cli("commit", "-m", "one", cwd=repo)

    result = cli("checkpoint", "-m", "batch", cwd=repo)
    assert result.exit_code == 1
    assert "init --upgrade" in result.output


def test_checkpoint_invalid_options(cli):
    repo = _local_repo(cli)
    assert cli("checkpoint", "--source", "tarball", cwd=repo).exit_code == 2
    assert cli("checkpoint", "--since-last", "--from", "abc", cwd=repo).exit_code == 2


def test_checkpoint_invalid_range(cli):
    repo = _local_repo(cli)
    for n in range(2):
        write_file(repo, f"f{n}.txt", str(n))
        cli("add", f"f{n}.txt", cwd=repo)
        cli("commit", "-m", f"commit {n}", cwd=repo)
    first, second = cli.store().load_commits()

    result = cli("checkpoint", "--dry-run", "--from", second.commit_id, "--to", first.commit_id, cwd=repo)
    assert result.exit_code == 1
    assert "comes after" in result.output


def test_remote_workflow(remote_cli):
    """init -> commits -> checkpoint -> push -> clone."""
    assert remote_cli("init", "proj").exit_code == 0
    repo = remote_cli.repo()
    for n in range(3):
        write_file(repo, f"contracts/c{n}.sol", f"contract C{n} {{}}")
        remote_cli("add", f"contracts/c{n}.sol", cwd=repo)
        assert remote_cli("commit", "-m", f"contract {n}", cwd=repo).exit_code == 0

    result = remote_cli("checkpoint", "-m", "Sprint 1", "--json", cwd=repo)
    assert result.exit_code == 0, result.output
    record = json.loads(result.output)
    assert record["commitCount"] == 3
    assert len(remote_cli.ledger.writes("checkpoint")) == 1
    assert remote_cli.ledger.writes("commit") == []

    again = remote_cli("checkpoint", "--since-last", cwd=repo)
    assert again.exit_code == 1
    assert "No commits since the last checkpoint" in again.output

    result = remote_cli("push", "--dry-run", cwd=repo)
    assert "Would push 3 commit(s)" in result.output
    result = remote_cli("push", cwd=repo)
    assert result.exit_code == 0, result.output
    assert len(remote_cli.ledger.writes("commit")) == 3
    assert "Everything up to date" in remote_cli("push", cwd=repo).output

    repo_id = remote_cli.store().load_config().repo_id
    result = remote_cli("clone", repo_id, "--dest", "copy")
    assert result.exit_code == 0, result.output
    cloned = remote_cli.store("copy").load_commits()
    assert [c.message for c in cloned] == ["contract 0", "contract 1", "contract 2"]


def test_commit_remote_anchors(remote_cli):
    remote_cli("init", "proj")
    repo = remote_cli.repo()
    remote_cli("add", "README.md", cwd=repo)

    result = remote_cli("commit", "-m", "anchored", "--remote", cwd=repo)
    assert result.exit_code == 0, result.output
    assert "anchored" in result.output
    head = remote_cli.store().head()
    assert head.anchored
    assert head.content_id in remote_cli.content.blobs


def test_pull(remote_cli):
    remote_cli("init", "proj")
    repo = remote_cli.repo()
    repo_id = remote_cli.store().load_config().repo_id
    remote_cli.ledger.record_commit(repo_id, "e" * 64, "", "from a teammate")

    result = remote_cli("pull", cwd=repo)
    assert result.exit_code == 0, result.output
    assert "Pulled 1 commit(s)" in result.output
    assert "Already up to date" in remote_cli("pull", cwd=repo).output


def test_pull_downloads_bundle(remote_cli):
    remote_cli("init", "proj")
    repo = remote_cli.repo()
    repo_id = remote_cli.store().load_config().repo_id
    cid = remote_cli.content.put(encode_bundle([bundle_entry("shared.txt", b"from upstream")]))
    remote_cli.ledger.record_commit(repo_id, "f" * 64, cid, "shared file")

    result = remote_cli("pull", "--verify", cwd=repo)
    assert result.exit_code == 0, result.output
    assert (repo / "shared.txt").read_text() == "from upstream"


def test_pull_no_download(remote_cli):
    remote_cli("init", "proj")
    repo = remote_cli.repo()
    repo_id = remote_cli.store().load_config().repo_id
    cid = remote_cli.content.put(encode_bundle([bundle_entry("shared.txt", b"from upstream")]))
    remote_cli.ledger.record_commit(repo_id, "f" * 64, cid, "shared file")

    result = remote_cli("pull", "--no-download", cwd=repo)
    assert result.exit_code == 0, result.output
    assert remote_cli.content.downloads == []
    assert not (repo / "shared.txt").exists()
    assert remote_cli.store().head().content_id == cid


def test_push_local_only(remote_cli):
    repo = _local_repo(remote_cli)
    result = remote_cli("push", cwd=repo)
    assert result.exit_code == 1
    assert "local-only" in result.output


def test_clone_unknown_repository(remote_cli):
    result = remote_cli("clone", "repo_missing")
    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_list(remote_cli):
    remote_cli.ledger.add_repository("mine")
    remote_cli.ledger.add_repository("theirs", owner="0xDef0000000000000000000000000000000000002")

    result = remote_cli("list")
    assert result.exit_code == 0, result.output
    assert "mine" in result.output and "theirs" in result.output

    result = remote_cli("list", "--mine")
    assert "mine" in result.output and "theirs" not in result.output


def test_list_detailed(remote_cli):
    repo_id = remote_cli.ledger.add_repository("mine")
    remote_cli.ledger.record_commit(repo_id, "a" * 64, "", "first")

    result = remote_cli("list", "--detailed")
    assert result.exit_code == 0, result.output
    assert "mine" in result.output


def test_list_local(cli):
    _local_repo(cli, "alpha")
    _local_repo(cli, "beta")
    result = cli("list", "--local")
    assert result.exit_code == 0, result.output
    assert "alpha" in result.output and "beta" in result.output


def test_revert(cli):
    repo = _local_repo(cli)
    write_file(repo, "a.txt", "v1")
    cli("add", "a.txt", cwd=repo)
    cli("commit", "-m", "v1", cwd=repo)
    first = cli.store().head()
    write_file(repo, "a.txt", "v2")
    cli("add", "a.txt", cwd=repo)
    cli("commit", "-m", "v2", cwd=repo)

    result = cli("revert", first.short_id, cwd=repo)
    assert result.exit_code == 0, result.output
    assert (repo / "a.txt").read_text() == "v1"
    assert (repo / ".bvc" / "backups").is_dir()


def test_revert_with_staged_changes(cli):
    repo = _local_repo(cli)
    cli("add", "README.md", cwd=repo)
    cli("commit", "-m", "one", cwd=repo)
    head = cli.store().head()
    write_file(repo, "b.txt", "B")
    cli("add", "b.txt", cwd=repo)

    result = cli("revert", head.short_id, "--no-backup", cwd=repo)
    assert result.exit_code == 1
    assert "--force" in result.output
    assert cli("revert", head.short_id, "--force", "--no-backup", cwd=repo).exit_code == 0


def test_config_setters_and_show(cli):
    result = cli("config", "--network", "localhost", "--author", "alice", "--global")
    assert result.exit_code == 0, result.output

    path = cli.home / ".bvc" / "user-config.json"
    saved = json.loads(path.read_text())
    assert saved["network"] == "localhost"
    assert saved["author"] == "alice"

    shown = json.loads(cli("config", "--show", "--json").output)
    assert shown["source"] == str(path)
    assert shown["config"]["network"] == "localhost"


def test_config_inside_repository_writes_repo_file(cli):
    repo = _local_repo(cli)
    assert cli("config", "--author", "bob", cwd=repo).exit_code == 0
    assert (repo / ".bvc" / "user-config.json").is_file()
    assert not (cli.home / ".bvc" / "user-config.json").exists()


def test_config_with_wrongly_typed_value(cli):
    path = cli.home / ".bvc" / "user-config.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"requestTimeout": "abc"}))

    result = cli("config", "--show")
    assert result.exit_code == 1
    assert "Invalid user configuration" in result.output


def test_config_rejects_unknown_network(cli):
    assert cli("config", "--network", "ropsten").exit_code == 2


def test_config_rejects_mixed_actions(cli):
    assert cli("config", "--show", "--check").exit_code == 2


def test_config_check(cli):
    result = cli("config", "--check")
    assert result.exit_code == 1
    assert "Private key not configured" in result.output

    cli.env = dict(REMOTE_ENV)
    result = cli("config", "--check")
    assert result.exit_code == 0, result.output
    assert "Configuration is complete" in result.output


def test_config_show_masks_key(cli):
    key = "0x" + "2" * 64
    cli("config", "--private-key", key, "--global")
    result = cli("config", "--show", "--json")
    assert key not in result.output


def test_config_encrypt_key(cli):
    key = "0x" + "3" * 64
    cli("config", "--private-key", key, "--global")
    cli.env = {"BVC_KEY_PASSPHRASE": "hunter2"}

    result = cli("config", "--encrypt-key", "--global")
    assert result.exit_code == 0, result.output

    saved = json.loads((cli.home / ".bvc" / "user-config.json").read_text())
    assert "privateKey" not in saved
    config = UserConfig.model_validate(saved)
    assert config.resolved_private_key("hunter2") == key


def test_config_encrypt_without_key(cli):
    result = cli("config", "--encrypt-key", "--global")
    assert result.exit_code == 1
    assert "No plaintext private key" in result.output


def test_config_reset(cli):
    cli("config", "--author", "alice", "--global")
    path = cli.home / ".bvc" / "user-config.json"

    assert cli("config", "--reset", "--global", input="n\n").exit_code == 1
    assert path.exists()
    assert cli("config", "--reset", "--global", "--yes").exit_code == 0
    assert not path.exists()


def test_config_setup(cli):
    answers = "\n".join(["localhost", "0x" + "4" * 64, "", "0x5FbDB2315678afecb367f032d93F642f64180aa3", "", "alice"]) + "\n"
    result = cli("config", "--setup", "--global", input=answers)
    assert result.exit_code == 0, result.output

    saved = json.loads((cli.home / ".bvc" / "user-config.json").read_text())
    assert saved["network"] == "localhost"
    assert saved["privateKey"] == "0x" + "4" * 64
    assert saved["contractAddress"] == "0x5FbDB2315678afecb367f032d93F642f64180aa3"
    assert saved["author"] == "alice"
    assert "rpcUrl" not in saved
