"""Tests for phase orchestration."""

import pytest

from vm_preflight.config import keys
from vm_preflight.drivers import DriverError
from vm_preflight.preflight import (
    AFTER_HOST_CHECKS,
    BEFORE_HOST_CHECKS,
    DriverKind,
    Outcome,
    PreflightOrchestrator,
    before_host_check,
)

from conftest import FakeDriver, healthy_responses, output_of


class TestDriverKind:
    """Tests for driver kind dispatch."""

    def test_parse_known(self):
        assert DriverKind.parse("kvm") is DriverKind.KVM
        assert DriverKind.parse("hyperv") is DriverKind.HYPERV

    def test_parse_is_exact(self):
        assert DriverKind.parse("KVM") is None
        assert DriverKind.parse("") is None
        assert DriverKind.parse(None) is None

    def test_every_kind_is_mapped(self):
        """The table covers every kind, even those without a check."""
        assert set(BEFORE_HOST_CHECKS) == set(DriverKind)

    def test_only_hypervisor_plugins_have_checks(self):
        with_checks = {k for k in DriverKind if before_host_check(k) is not None}
        assert with_checks == {DriverKind.XHYVE, DriverKind.KVM, DriverKind.HYPERV}

    def test_no_check_for_unknown(self):
        assert before_host_check(None) is None

    def test_kvm_has_its_own_warn_key(self):
        assert before_host_check(DriverKind.KVM).warn_key == keys.WARN_CHECK_KVM_DRIVER


class TestBeforeHostCreation:
    """Tests for the before-host phase."""

    @pytest.mark.parametrize("driver_name", ["virtualbox", "vmwarefusion", "bogus", ""])
    def test_unmatched_driver_is_silent(self, driver_name, make_config, console):
        """Drivers without a check produce no output and no failure."""
        orchestrator = PreflightOrchestrator(make_config(), console)

        results = orchestrator.run_before_host_creation(driver_name)

        assert results.results == []
        assert not results.has_fatal
        assert output_of(console) == ""

    def test_hyperv_without_switch_is_fatal(self, make_config, console):
        orchestrator = PreflightOrchestrator(make_config(), console)

        results = orchestrator.run_before_host_creation("hyperv")

        assert results.has_fatal
        assert output_of(console) == (
            "-- Checking if Hyper-V driver is configured ... FAIL\n"
            "   Hyper-V virtual switch is not set\n"
        )

    def test_hyperv_with_switch_passes(self, make_config, console):
        config = make_config(environ={"HYPERV_VIRTUAL_SWITCH": "External"})
        orchestrator = PreflightOrchestrator(config, console)

        results = orchestrator.run_before_host_creation("hyperv")

        assert [r.outcome for r in results.results] == [Outcome.PASSED]

    def test_driver_name_from_config(self, make_config, console):
        config = make_config({keys.VM_DRIVER: "hyperv", keys.SKIP_CHECK_HYPERV_DRIVER: True})
        orchestrator = PreflightOrchestrator(config, console)

        results = orchestrator.run_before_host_creation()

        assert [r.outcome for r in results.results] == [Outcome.SKIPPED]
        assert output_of(console) == "-- Checking if Hyper-V driver is configured ... SKIP\n"

    def test_kvm_missing_can_be_warned(self, tmp_path, monkeypatch, make_config, console):
        monkeypatch.setenv("PATH", str(tmp_path))
        config = make_config({keys.WARN_CHECK_KVM_DRIVER: True})

        results = PreflightOrchestrator(config, console).run_before_host_creation("kvm")

        assert not results.has_fatal
        assert [r.outcome for r in results.results] == [Outcome.WARNED]


class TestAfterHostCreation:
    """Tests for the after-host phase."""

    def test_fixed_order(self):
        assert [d.name for d in AFTER_HOST_CHECKS] == [
            "instance-ip",
            "network-ping",
            "network-http",
            "storage-mount",
            "storage-usage",
        ]

    def test_network_checks_warn_by_default(self):
        defaults = {d.name: d.treat_as_warning for d in AFTER_HOST_CHECKS}
        assert defaults["network-ping"] and defaults["network-http"]
        assert not defaults["instance-ip"]
        assert not defaults["storage-mount"]
        assert not defaults["storage-usage"]

    def test_healthy_vm_passes(self, make_config, console):
        driver = FakeDriver(responses=healthy_responses())
        orchestrator = PreflightOrchestrator(make_config(), console)

        results = orchestrator.run_after_host_creation(driver)

        assert all(r.passed for r in results.results)
        assert len(results.results) == len(AFTER_HOST_CHECKS)
        assert output_of(console).startswith("-- Checking for IP address ... OK\n")

    def test_ipv6_address_stops_phase(self, make_config, console):
        """A fatal IP failure prevents any remote command from running."""
        driver = FakeDriver(ip="fe80::1", responses=healthy_responses())
        orchestrator = PreflightOrchestrator(make_config(), console)

        results = orchestrator.run_after_host_creation(driver)

        assert results.fatal.check == "instance-ip"
        assert driver.commands == []
        assert output_of(console).endswith("   Error determining IP address\n")

    def test_network_failures_do_not_stop_phase(self, make_config):
        responses = healthy_responses()
        responses["ping"] = DriverError("unreachable")
        responses["curl"] = DriverError("proxy")
        driver = FakeDriver(responses=responses)

        results = PreflightOrchestrator(make_config()).run_after_host_creation(driver)

        assert not results.has_fatal
        assert [r.check for r in results.warnings] == ["network-ping", "network-http"]
        assert results.results[-1].passed

    def test_full_disk_is_fatal(self, make_config, console):
        driver = FakeDriver(responses=healthy_responses(usage="99%"))

        results = PreflightOrchestrator(make_config(), console).run_after_host_creation(driver)

        assert results.fatal.check == "storage-usage"
        assert output_of(console).endswith(
            "-- Checking available disk space ... 99% FAIL\n"
            "   Insufficient disk space on the persistent storage volume\n"
        )

    def test_unmounted_storage_skips_usage(self, make_config):
        responses = healthy_responses()
        responses["/proc/mounts"] = "0\n"
        driver = FakeDriver(responses=responses)

        results = PreflightOrchestrator(make_config()).run_after_host_creation(driver)

        assert results.fatal.check == "storage-mount"
        assert not any("df -h" in c for c in driver.commands)

    def test_skipped_checks_run_no_commands(self, make_config):
        config = make_config({
            keys.SKIP_CHECK_NETWORK_PING: True,
            keys.SKIP_CHECK_NETWORK_HTTP: True,
            keys.SKIP_CHECK_STORAGE_MOUNT: True,
            keys.SKIP_CHECK_STORAGE_USAGE: True,
        })
        driver = FakeDriver(responses={})

        results = PreflightOrchestrator(config).run_after_host_creation(driver)

        assert driver.commands == []
        assert len(results.skipped) == 4
