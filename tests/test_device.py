"""Tests for device queries."""

import pytest

from gameperf import device
from gameperf.errors import ExecutionError, InjectionError, NotFoundError, PropertyError
from gameperf.models import ProcessIdentity

PS_LISTING = """\
USER           PID  PPID     VSZ    RSS WCHAN            ADDR S NAME
root             1     0 1234567  12345 0                   0 S init
system         812     1 9876543  54321 0                   0 S system_server
u0_a123       4321   812 5555555 222222 0                   0 S com.example.game
u0_a124       4400   812 5555555 111111 0                   0 S com.example.game:remote
"""

GETPROP = """\
[ro.build.version.release]: [13]
[ro.build.version.sdk]: [33]
[ro.product.model]: [Pixel 7]
"""


class TestResolvePid:
    """Tests for resolve_pid."""

    def test_numeric_identifier_skips_listing(self, fake_adb):
        """Test a numeric identifier is returned verbatim without adb."""
        identity = device.resolve_pid("4321")

        assert identity.pid == "4321"
        assert fake_adb.calls == []

    def test_matches_last_column_substring(self, fake_adb):
        """Test a partial name resolves through the process listing."""
        fake_adb.responses["shell ps -e"] = PS_LISTING

        identity = device.resolve_pid("system_")

        assert identity == ProcessIdentity(pid="812", name="system_server")

    def test_first_match_wins(self, fake_adb):
        """Test the first line in listing order wins when several match."""
        fake_adb.responses["shell ps -e"] = PS_LISTING

        identity = device.resolve_pid("example")

        assert identity == ProcessIdentity(pid="4321", name="com.example.game")

    def test_not_found(self, fake_adb):
        """Test NotFoundError when no process matches."""
        fake_adb.responses["shell ps -e"] = PS_LISTING

        with pytest.raises(NotFoundError):
            device.resolve_pid("com.missing")

    def test_column_header_is_not_a_process(self, fake_adb):
        """Test the USER PID ... NAME header line never matches."""
        fake_adb.responses["shell ps -e"] = PS_LISTING

        with pytest.raises(NotFoundError):
            device.resolve_pid("AM")
        assert device.resolve_pid("") == ProcessIdentity(pid="1", name="init")

    def test_execution_error_propagates(self, fake_adb):
        """Test adb failures are not converted."""
        with pytest.raises(ExecutionError):
            device.resolve_pid("game")


class TestResolvePackage:
    """Tests for resolve_package."""

    def test_returns_text_after_last_equals(self, fake_adb):
        """Test the package name is taken after the last '='."""
        fake_adb.responses["shell pm list packages -f"] = (
            "package:/data/app/~~AbC==/com.example.game-xYz==/base.apk=com.example.game\n"
        )

        assert device.resolve_package("example") == "com.example.game"
        assert fake_adb.calls == ["shell pm list packages -f example"]

    def test_not_found(self, fake_adb):
        """Test NotFoundError on an empty listing."""
        fake_adb.responses["shell pm list packages -f"] = ""

        with pytest.raises(NotFoundError):
            device.resolve_package("example")


class TestGetProperty:
    """Tests for get_property."""

    def test_reads_bracketed_value(self, fake_adb):
        """Test a [key]: [value] line yields the value."""
        fake_adb.responses["shell getprop"] = "[ro.build.version.sdk]: [33]\n"

        assert device.get_property("ro.build.version.sdk") == "33"

    def test_first_line_containing_key(self, fake_adb):
        """Test the first line mentioning the key is used."""
        fake_adb.responses["shell getprop"] = GETPROP

        assert device.get_property("ro.build.version") == "13"
        assert device.get_property("ro.product.model") == "Pixel 7"

    def test_missing_key(self, fake_adb):
        """Test PropertyError when no line contains the key."""
        fake_adb.responses["shell getprop"] = GETPROP

        with pytest.raises(PropertyError):
            device.get_property("ro.missing")

    def test_malformed_line(self, fake_adb):
        """Test PropertyError when the matching line is not a bracketed pair."""
        fake_adb.responses["shell getprop"] = "ro.build.version.sdk=33\n"

        with pytest.raises(PropertyError):
            device.get_property("ro.build.version.sdk")


class TestLibraryChecks:
    """Tests for check_library_loaded and wait_for_library."""

    MAPS = (
        "7f0000-7f1000 r-xp 00000000 fd:00 123 /system/lib64/libc.so\n"
        "7f2000-7f3000 r-xp 00000000 fd:00 456 /data/app/com.example.game/lib/arm64/libhook.so\n"
    )

    def test_loaded(self, fake_adb):
        """Test a mapping ending with the library name succeeds."""
        fake_adb.responses["shell run-as"] = self.MAPS

        assert device.check_library_loaded("com.example.game", "4321", "libhook.so") is True
        assert fake_adb.calls == ["shell run-as com.example.game cat /proc/4321/maps"]

    def test_not_loaded(self, fake_adb):
        """Test InjectionError when the library is not mapped."""
        fake_adb.responses["shell run-as"] = self.MAPS

        with pytest.raises(InjectionError):
            device.check_library_loaded("com.example.game", "4321", "libmissing.so")

    def test_wait_for_library_polls_until_loaded(self, monkeypatch):
        """Test InjectionError is treated as 'keep polling'."""
        outcomes = [InjectionError("libhook.so"), InjectionError("libhook.so"), True]

        def fake_check(package, pid, library):
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        monkeypatch.setattr(device, "check_library_loaded", fake_check)

        assert device.wait_for_library("com.example.game", "4321", "libhook.so", interval=0) is True
        assert outcomes == []

    def test_wait_for_library_gives_up(self, fake_adb):
        """Test the last InjectionError is raised after all attempts."""
        fake_adb.responses["shell run-as"] = self.MAPS

        with pytest.raises(InjectionError):
            device.wait_for_library("com.example.game", "4321", "libmissing.so", attempts=3, interval=0)
        assert len(fake_adb.calls) == 3


class TestMeminfoAndCurrentApp:
    """Tests for dump_meminfo and current_app."""

    def test_dump_meminfo(self, fake_adb, meminfo_report):
        """Test dump_meminfo returns the raw report."""
        fake_adb.responses["shell dumpsys meminfo"] = meminfo_report

        assert device.dump_meminfo("4321") == meminfo_report
        assert fake_adb.calls == ["shell dumpsys meminfo 4321"]

    def test_current_app(self, fake_adb):
        """Test the resumed activity's package is extracted."""
        fake_adb.responses["shell dumpsys activity"] = (
            "    mResumedActivity: ActivityRecord{9f1a u0 com.example.game/.MainActivity t42}\n"
        )

        assert device.current_app() == "com.example.game"

    def test_current_app_not_found(self, fake_adb):
        """Test NotFoundError when nothing is resumed."""
        fake_adb.responses["shell dumpsys activity"] = ""

        with pytest.raises(NotFoundError):
            device.current_app()
