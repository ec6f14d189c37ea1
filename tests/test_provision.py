import pytest
from unittest.mock import MagicMock, patch

from server_setup import provision
from server_setup.errors import CommandError, ProviderError, ZoneNotFound
from server_setup.provision import (
    Provisioner,
    StepResult,
    StepStatus,
    create_swap,
    flush_firewall,
    install_hiddify,
    update_dns,
    update_packages,
)
from server_setup.reconciler import ReconcileAction, ReconcileResult


# ========
# FIXTURES
# ========
@pytest.fixture
def mock_run():
    """Capture OS commands instead of executing them; no sudo prefix"""
    with patch("server_setup.provision.run_command") as mock_run, \
         patch("server_setup.provision.privileged", side_effect=lambda cmd: list(cmd)):
        mock_run.return_value.stdout = "Mem: 1.9Gi\nSwap: 2.0Gi\n"
        yield mock_run


def commands(mock_run):
    return [c.args[0] for c in mock_run.call_args_list]


# ===========================
# TEST GROUP: Package update
# ===========================
def test_update_packages(mock_run):
    result = update_packages()

    noninteractive = ["env", "DEBIAN_FRONTEND=noninteractive", "apt"]
    cmds = commands(mock_run)
    assert cmds[0] == [*noninteractive, "update"]
    assert cmds[1] == [*noninteractive, "-y", "upgrade"]
    assert cmds[2][:5] == [*noninteractive, "install", "-y"]
    assert "iptables-persistent" in cmds[2]
    assert result.status is StepStatus.SUCCESS


def test_update_packages_keeps_frontend_under_sudo():
    """DEBIAN_FRONTEND is set after sudo so env_reset cannot drop it"""
    with patch("server_setup.provision.run_command") as mock_run, \
         patch("server_setup.utils.os.geteuid", return_value=1000):
        update_packages()

    for cmd in commands(mock_run):
        assert cmd[:3] == ["sudo", "env", "DEBIAN_FRONTEND=noninteractive"]


# =====================
# TEST GROUP: Swap file
# =====================
def test_create_swap_new_file(mock_run, tmp_path):
    swap_file = str(tmp_path / "swapfile")

    result = create_swap(swap_file=swap_file, size="2G", swappiness=20)

    cmds = commands(mock_run)
    assert cmds[:4] == [
        ["fallocate", "-l", "2G", swap_file],
        ["chmod", "600", swap_file],
        ["mkswap", swap_file],
        ["swapon", swap_file],
    ]
    fstab_call = mock_run.call_args_list[4]
    assert fstab_call.args[0] == ["tee", "-a", "/etc/fstab"]
    assert fstab_call.kwargs["input"] == f"{swap_file} swap swap defaults 0 0\n"
    assert mock_run.call_args_list[5].kwargs["input"] == "vm.swappiness = 20\n"
    assert ["sysctl", "-p", "/etc/sysctl.d/99-swappiness.conf"] in cmds
    assert cmds[-1] == ["free", "-h"]
    assert result.status is StepStatus.SUCCESS


def test_create_swap_existing_file_skips_creation(mock_run, tmp_path):
    swap_file = tmp_path / "swapfile"
    swap_file.write_bytes(b"")

    result = create_swap(swap_file=str(swap_file), swappiness=20)

    flat = [" ".join(cmd) for cmd in commands(mock_run)]
    assert not any(cmd.startswith(("fallocate", "mkswap", "swapon")) for cmd in flat)
    assert "sysctl -p /etc/sysctl.d/99-swappiness.conf" in flat
    assert result.status is StepStatus.SUCCESS
    assert "already present" in result.detail


# ====================
# TEST GROUP: Firewall
# ====================
def test_flush_firewall(mock_run):
    result = flush_firewall(assume_yes=True)

    assert commands(mock_run) == [
        ["iptables", "-F"],
        ["iptables", "-X"],
        ["netfilter-persistent", "save"],
        ["netfilter-persistent", "reload"],
    ]
    assert result.status is StepStatus.SUCCESS


def test_flush_firewall_waits_for_operator(mock_run, monkeypatch):
    prompts = []
    monkeypatch.setattr("builtins.input", lambda prompt="": prompts.append(prompt))

    flush_firewall(assume_yes=False)

    assert len(prompts) == 1
    assert mock_run.call_count == 4


# ====================
# TEST GROUP: DNS step
# ====================
def test_update_dns_without_ip_skips_reconcile():
    with patch("server_setup.provision.get_ip", return_value=None), \
         patch("server_setup.provision.reconcile") as mock_reconcile:
        result = update_dns("vpn.example.com", "tok123")

    mock_reconcile.assert_not_called()
    assert result.status is StepStatus.SKIPPED


def test_update_dns_success_prints_response(capsys):
    reconciled = ReconcileResult(
        hostname="vpn.example.com",
        zone_id="z1",
        record_id="r9",
        action=ReconcileAction.CREATED,
        response={"success": True, "result": {"id": "r9"}},
    )
    with patch("server_setup.provision.get_ip", return_value="203.0.113.7"), \
         patch("server_setup.provision.reconcile", return_value=reconciled) as mock_reconcile:
        result = update_dns("vpn.example.com", "tok123")

    mock_reconcile.assert_called_once_with("vpn.example.com", "tok123", "203.0.113.7")
    assert result.status is StepStatus.SUCCESS
    assert '"id": "r9"' in capsys.readouterr().out


def test_update_dns_zone_not_found_is_soft_failure():
    with patch("server_setup.provision.get_ip", return_value="203.0.113.7"), \
         patch("server_setup.provision.reconcile", side_effect=ZoneNotFound("example.com")):
        result = update_dns("vpn.example.com", "tok123")

    assert result.status is StepStatus.FAILED
    assert "example.com" in result.detail


def test_update_dns_provider_error_propagates():
    with patch("server_setup.provision.get_ip", return_value="203.0.113.7"), \
         patch("server_setup.provision.reconcile", side_effect=ProviderError("boom", 500)):
        with pytest.raises(ProviderError):
            update_dns("vpn.example.com", "tok123")


# ===========================
# TEST GROUP: Installer step
# ===========================
def test_install_hiddify(mock_run):
    result = install_hiddify(assume_yes=True, url="https://installer.test/custom")

    assert commands(mock_run) == [
        ["bash", "-c", "bash <(curl https://installer.test/custom)"]
    ]
    assert result.status is StepStatus.SUCCESS


# =========================
# TEST GROUP: Orchestration
# =========================
@pytest.fixture
def fake_steps(monkeypatch):
    """Replace every step with a recorder returning SUCCESS"""
    order = []

    def make(name):
        def step(*args, **kwargs):
            order.append(name)
            return StepResult(name, StepStatus.SUCCESS)
        return step

    for func, name in [
        ("update_packages", "packages"),
        ("create_swap", "swap"),
        ("flush_firewall", "firewall"),
        ("update_dns", "dns"),
        ("install_hiddify", "hiddify"),
    ]:
        monkeypatch.setattr(provision, func, make(name))
    return order


def test_provisioner_runs_steps_in_order(fake_steps):
    results = Provisioner("tok123", "vpn.example.com", assume_yes=True).run()

    assert fake_steps == ["packages", "swap", "firewall", "dns", "hiddify"]
    assert [r.status for r in results] == [StepStatus.SUCCESS] * 5


def test_provisioner_skips_steps(fake_steps):
    results = Provisioner(
        "tok123", "vpn.example.com", skip=["firewall", "hiddify"]
    ).run()

    assert fake_steps == ["packages", "swap", "dns"]
    skipped = [r.name for r in results if r.status is StepStatus.SKIPPED]
    assert skipped == ["firewall", "hiddify"]


def test_provisioner_rejects_unknown_step():
    with pytest.raises(ValueError):
        Provisioner("tok123", "vpn.example.com", skip=["reboot"])


def test_provisioner_aborts_on_command_error(fake_steps, monkeypatch):
    def broken_swap():
        raise CommandError(["mkswap", "/swapfile"], 1)

    monkeypatch.setattr(provision, "create_swap", broken_swap)

    with pytest.raises(CommandError):
        Provisioner("tok123", "vpn.example.com", assume_yes=True).run()

    assert fake_steps == ["packages"]
