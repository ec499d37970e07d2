"""Unit tests for backend selection."""

import pytest
from unittest.mock import MagicMock, Mock

from fwb.backends.factory import (
    Engine,
    Supported,
    Unsupported,
    build_backend,
    platform_matches,
    require_backend,
)
from fwb.backends.pf import PfBackend
from fwb.core.config import BouncerConfig, PfConfig
from fwb.core.context import ExecutionContext
from fwb.core.exceptions import UnsupportedBackendError
from fwb.core.executor import CommandExecutor


@pytest.fixture
def ctx():
    return ExecutionContext(_console=MagicMock())


class TestPlatformMatches:
    """Tests for engine/platform compatibility."""

    def test_pf_on_bsd(self):
        """pf runs on OpenBSD and FreeBSD."""
        assert platform_matches(Engine.PF, "openbsd7")
        assert platform_matches(Engine.PF, "freebsd14")

    def test_pf_not_on_linux(self):
        """pf is not available on Linux."""
        assert not platform_matches(Engine.PF, "linux")

    def test_netfilter_on_linux(self):
        """iptables and nftables are Linux engines."""
        assert platform_matches(Engine.IPTABLES, "linux")
        assert platform_matches(Engine.NFTABLES, "linux")
        assert not platform_matches(Engine.NFTABLES, "darwin")


class TestBuildBackend:
    """Tests for build_backend."""

    def test_pf_supported_on_freebsd(self, ctx):
        """pf mode on FreeBSD yields a pf backend."""
        result = build_backend(ctx, BouncerConfig(mode="pf"), platform="freebsd14")

        assert isinstance(result, Supported)
        assert isinstance(result.backend, PfBackend)

    def test_pf_unsupported_on_linux(self, ctx):
        """pf mode on Linux is an explicit Unsupported result."""
        result = build_backend(ctx, BouncerConfig(mode="pf"), platform="linux")

        assert isinstance(result, Unsupported)
        assert result.engine == "pf"
        assert "linux" in result.reason

    def test_dry_run_ignores_platform(self):
        """Dry-run builds pf anywhere for previewing."""
        dry_ctx = ExecutionContext(dry_run=True, _console=MagicMock())
        result = build_backend(dry_ctx, BouncerConfig(mode="pf"), platform="linux")

        assert isinstance(result, Supported)

    def test_engine_without_driver(self, ctx):
        """Known engines without a driver are Unsupported, never None."""
        result = build_backend(ctx, BouncerConfig(mode="nftables"), platform="linux")

        assert isinstance(result, Unsupported)
        assert "no nftables driver" in result.reason

    def test_unknown_mode(self, ctx):
        """An unknown mode is Unsupported."""
        config = BouncerConfig.model_construct(mode="ipfw")
        result = build_backend(ctx, config, platform="freebsd14")

        assert isinstance(result, Unsupported)
        assert "ipfw" in result.reason

    def test_ipv6_disabled_from_config(self, ctx):
        """disable_ipv6 removes the IPv6 table context."""
        result = build_backend(
            ctx, BouncerConfig(mode="pf", disable_ipv6=True), platform="openbsd7",
        )

        assert result.backend.inet6 is None
        assert result.backend.inet is not None

    def test_config_tables_and_paths(self, ctx):
        """Table names and tool paths come from config."""
        config = BouncerConfig(pf=PfConfig(
            pfctl_path="/usr/local/sbin/pfctl",
            device="/dev/pf0",
            blacklists_ipv4="bans4",
            blacklists_ipv6="bans6",
        ))
        executor = Mock(spec=CommandExecutor)
        backend = build_backend(ctx, config, executor=executor, platform="freebsd14").backend

        assert backend.inet.table == "bans4"
        assert backend.inet6.table == "bans6"
        assert backend.pfctl == "/usr/local/sbin/pfctl"
        assert str(backend.device) == "/dev/pf0"
        assert backend.executor is executor


class TestRequireBackend:
    """Tests for require_backend."""

    def test_unwraps_supported(self, ctx):
        """Supported results return the backend."""
        backend = Mock()
        assert require_backend(Supported(backend)) is backend

    def test_raises_for_unsupported(self):
        """Unsupported results raise with the reason."""
        with pytest.raises(UnsupportedBackendError) as exc:
            require_backend(Unsupported("iptables", "no iptables driver in this build"))
        assert "iptables" in str(exc.value)
        assert exc.value.exit_code == 17
