import httpx
import pytest
import yaml

from agentstart.assets.install import Installer, build_asset_content
from agentstart.assets.inventory import InstalledAsset, collect_installed, compare_versions, version_from_origin
from agentstart.config import ConfigStore, InstalledConfig
from agentstart.errors import InstallFailedError
from agentstart.paths import Scope
from agentstart.registry.client import RegistryClient
from agentstart.registry.index import IndexEntry

from conftest import make_index

BASE = "https://registry.test"


def _installer(config_paths, assets):
    """Installer whose registry serves ``assets`` keyed by URL path."""

    def handler(request):
        body = assets.get(request.url.path)
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, text=yaml.safe_dump(body))

    client = RegistryClient(BASE, transport=httpx.MockTransport(handler))
    return Installer(ConfigStore(config_paths), client)


def test_build_asset_content_records_origin():
    entry = IndexEntry(module="github.com/a/agents/claude", description="Claude", tags=["anthropic"], version="v1.0.0", bin="claude")
    content = build_asset_content({"name": "claude", "command": "{bin} -p {prompt}"}, entry)

    assert content == {
        "command": "{bin} -p {prompt}",
        "description": "Claude",
        "tags": ["anthropic"],
        "bin": "claude",
        "origin": "github.com/a/agents/claude@v1.0.0",
    }


def test_install_writes_entry(config_paths):
    entry = IndexEntry(module="github.com/a/roles/go", description="Go expert", version="v0.2.0")
    installer = _installer(config_paths, {"/github.com/a/roles/go/v0.2.0.yaml": {"prompt": "You are a Go expert"}})

    path = installer.install("roles", "golang/expert", entry)

    assert path == config_paths.global_dir / "roles.yaml"
    role = ConfigStore(config_paths).load().get("roles", "golang/expert")
    assert role.prompt == "You are a Go expert"
    assert role.origin == "github.com/a/roles/go@v0.2.0"


def test_install_task_pulls_role_dependency(config_paths):
    index = make_index(
        roles={"golang/review/code": {"module": "github.com/a/roles/review", "version": "v1.0.0"}},
        tasks={"golang/review/pr": {"module": "github.com/a/tasks/pr", "version": "v1.0.0"}},
    )
    installer = _installer(config_paths, {
        "/github.com/a/tasks/pr/v1.0.0.yaml": {"prompt": "Review {pr}", "role_module": "github.com/a/roles/review@v1.0.0"},
        "/github.com/a/roles/review/v1.0.0.yaml": {"prompt": "You review code"},
    })

    installer.install("tasks", "golang/review/pr", index.tasks["golang/review/pr"], Scope.LOCAL, index)

    cfg = ConfigStore(config_paths).load(Scope.LOCAL)
    assert cfg.get("tasks", "golang/review/pr").role == "golang/review/code"
    assert cfg.has("roles", "golang/review/code")
    assert "role_module" not in cfg.get("tasks", "golang/review/pr").model_extra


def test_install_failure_is_wrapped(config_paths):
    entry = IndexEntry(module="github.com/a/roles/missing")
    installer = _installer(config_paths, {})

    with pytest.raises(InstallFailedError) as exc:
        installer.install("roles", "missing", entry)

    assert "Installing role 'missing' failed" in str(exc.value)
    assert not (config_paths.global_dir / "roles.yaml").exists()


# ----------------------------------------------------------------------
# Installed inventory
# ----------------------------------------------------------------------
@pytest.mark.parametrize(
    "a, b, expected",
    [
        ("v1.2.0", "v1.10.0", -1),
        ("v1.0.0", "1.0.0", 0),
        ("v2", "v1.9.9", 1),
        ("v1.0.0-rc.1", "v1.0.0", -1),
        ("v1.0.0-rc.2", "v1.0.0-rc.10", -1),
        ("latest", "v0.0.1", -1),
        ("junk", "other", 0),
    ],
)
def test_compare_versions(a, b, expected):
    assert compare_versions(a, b) == expected


def test_version_from_origin():
    assert version_from_origin("github.com/x/role@v0.1.1") == "v0.1.1"
    assert version_from_origin("github.com/x/role") == ""


def test_collect_installed_skips_hand_written_entries():
    merged = InstalledConfig.from_dict({
        "tasks": {"zeta": {"origin": "m/zeta@v1.0.0"}, "mine": {}},
        "agents": {"claude": {"origin": "m/claude@v0.2.0"}},
    })
    local = InstalledConfig.from_dict({"tasks": {"zeta": {"origin": "m/zeta@v1.0.0"}}})

    found = collect_installed(merged, local)

    assert [(a.label, a.scope) for a in found] == [("agents/claude", Scope.GLOBAL), ("tasks/zeta", Scope.LOCAL)]
    assert found[0].version == "v0.2.0"


def test_update_available():
    asset = InstalledAsset("agents", "claude", "m/claude@v0.2.0", Scope.GLOBAL)

    assert asset.update_available(IndexEntry(module="m/claude", version="v0.3.0"))
    assert not asset.update_available(IndexEntry(module="m/claude", version="v0.2.0"))
    assert not asset.update_available(IndexEntry(module="m/claude"))
    assert not asset.update_available(None)
