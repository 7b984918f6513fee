"""Tests for host platform detection."""
from devsetup.discovery.platform import detect_platform
from devsetup.models.state import OSFamily


def which_for(*available):
    return lambda name: f"/usr/bin/{name}" if name in available else None


class TestDetectPlatform:

    def test_macos(self):
        info = detect_platform(system="Darwin", which=which_for())
        assert info.family == OSFamily.MACOS
        assert info.supported

    def test_debian_family(self):
        assert detect_platform("Linux", which_for("apt")).family == OSFamily.DEBIAN

    def test_fedora_family(self):
        assert detect_platform("Linux", which_for("dnf")).family == OSFamily.FEDORA

    def test_arch_family(self):
        assert detect_platform("Linux", which_for("pacman")).family == OSFamily.ARCH

    def test_first_package_manager_wins(self):
        assert detect_platform("Linux", which_for("dnf", "apt")).family == OSFamily.DEBIAN

    def test_linux_without_known_package_manager(self):
        info = detect_platform("Linux", which_for("zypper"))
        assert info.family == OSFamily.UNKNOWN
        assert not info.supported

    def test_other_systems_are_unknown(self):
        info = detect_platform("Windows", which_for("apt"))
        assert info.family == OSFamily.UNKNOWN
        assert info.system == "Windows"
