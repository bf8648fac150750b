from __future__ import annotations

from pathlib import Path

import pytest

from adbr.adb import Adb, AdbCommandBuilder
from adbr.envs import AdbEnvs
from adbr.errors import InvalidFormat, InvalidValue
from adbr.file_transfer import CompressionAlgorithm
from adbr.global_option import GlobalOption
from adbr.scripting import RebootTarget, WaitForState, WaitForTransport
from adbr.sockets import Jdwp, Tcp


def make_adb(**kwargs) -> Adb:
    kwargs.setdefault("envs", AdbEnvs())
    return Adb(**kwargs)


@pytest.fixture
def adb() -> Adb:
    return make_adb()


def _args(command) -> list[str]:
    return list(command.build().argv[1:])


def test_global_options_precede_the_subcommand(adb: Adb) -> None:
    invocation = adb.serial("emulator-5554").usb().port(5038).devices().long().build()

    assert invocation.argv == ("adb", "-s", "emulator-5554", "-d", "-P", "5038", "devices", "-l")


def test_setting_an_option_twice_keeps_the_last_value(adb: Adb) -> None:
    command = adb.serial("first").serial("second").usb().usb().get_state()

    assert _args(command) == ["-s", "second", "-d", "get-state"]


def test_adb_hands_out_fresh_builders(adb: Adb) -> None:
    first = adb.serial("one")
    second = adb.command()

    assert isinstance(first, AdbCommandBuilder)
    assert _args(second.version()) == ["version"]
    assert _args(first.version()) == ["-s", "one", "version"]


def test_default_global_options_seed_every_builder() -> None:
    adb = make_adb(global_options=[GlobalOption.tcp_ip()])

    assert _args(adb.serial("x").devices()) == ["-e", "-s", "x", "devices"]
    assert _args(adb.devices()) == ["-e", "devices"]


def test_builder_setters_cover_every_option(adb: Adb) -> None:
    command = (
        adb.listen_all()
        .tcp_ip()
        .transport_id(3)
        .host("127.0.0.1")
        .listen("tcp:5037")
        .one_device("SER")
        .exit_on_write_error()
        .start_server()
    )

    assert _args(command) == [
        "-a",
        "-e",
        "-t",
        "3",
        "-H",
        "127.0.0.1",
        "-L",
        "tcp:5037",
        "--one-device",
        "SER",
        "--exit-on-write-error",
        "start-server",
    ]


def test_str_renders_a_shell_quoted_command_line(adb: Adb) -> None:
    assert str(adb.shell("echo hello world")) == "adb shell 'echo hello world'"


def test_envs_become_invocation_overrides() -> None:
    adb = make_adb(envs=AdbEnvs(android_serial="abc"))
    invocation = adb.devices().build()

    environment = invocation.environment({"ANDROID_SERIAL": "old", "ADB_LIBUSB": "1", "PATH": "/bin"})

    assert environment == {"ANDROID_SERIAL": "abc", "PATH": "/bin"}


def test_working_directory_prefixes_the_executable(tmp_path: Path) -> None:
    adb = make_adb(working_directory=tmp_path)
    invocation = adb.version().build()

    assert invocation.cwd == tmp_path.resolve()
    assert invocation.argv[0] == str(tmp_path.resolve() / "adb")


def test_missing_working_directory_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        make_adb(working_directory=tmp_path / "missing")
    target = tmp_path / "file"
    target.write_text("x", encoding="utf-8")
    with pytest.raises(NotADirectoryError):
        make_adb(working_directory=target)


@pytest.mark.parametrize(
    ("factory", "expected"),
    [
        (lambda adb: adb.devices(), ["devices"]),
        (lambda adb: adb.help(), ["help"]),
        (lambda adb: adb.version(), ["version"]),
        (lambda adb: adb.start_server(), ["start-server"]),
        (lambda adb: adb.kill_server(), ["kill-server"]),
        (lambda adb: adb.reconnect(), ["reconnect"]),
        (lambda adb: adb.reconnect().device(), ["reconnect", "device"]),
        (lambda adb: adb.reconnect().offline(), ["reconnect", "offline"]),
        (lambda adb: adb.host_features(), ["host-features"]),
        (lambda adb: adb.features(), ["features"]),
        (lambda adb: adb.bugreport(), ["bugreport"]),
        (lambda adb: adb.bugreport(Path("out.zip")), ["bugreport", "out.zip"]),
        (lambda adb: adb.jdwp(), ["jdwp"]),
        (lambda adb: adb.logcat("-d", "-v", "time"), ["logcat", "-d", "-v", "time"]),
        (lambda adb: adb.disable_verity(), ["disable-verity"]),
        (lambda adb: adb.enable_verity(), ["enable-verity"]),
        (lambda adb: adb.keygen("adbkey"), ["keygen", "adbkey"]),
        (lambda adb: adb.attach("SER"), ["attach", "SER"]),
        (lambda adb: adb.detach("SER"), ["detach", "SER"]),
    ],
)
def test_general_commands(adb: Adb, factory, expected: list[str]) -> None:
    assert _args(factory(adb)) == expected


@pytest.mark.parametrize(
    ("factory", "expected"),
    [
        (lambda adb: adb.connect("192.168.1.5"), ["connect", "192.168.1.5"]),
        (lambda adb: adb.connect("192.168.1.5").port(5555), ["connect", "192.168.1.5:5555"]),
        (lambda adb: adb.disconnect(), ["disconnect"]),
        (lambda adb: adb.disconnect("10.0.0.1", 5555), ["disconnect", "10.0.0.1:5555"]),
        (lambda adb: adb.pair("10.0.0.1", 37000), ["pair", "10.0.0.1:37000"]),
        (
            lambda adb: adb.pair("10.0.0.1").port(37000).pairing_code("123456"),
            ["pair", "10.0.0.1:37000", "123456"],
        ),
        (lambda adb: adb.forward("tcp:8080", "tcp:80"), ["forward", "tcp:8080", "tcp:80"]),
        (
            lambda adb: adb.forward(Tcp(port=8700), Jdwp(1234)).no_rebind(),
            ["forward", "--no-rebind", "tcp:8700", "jdwp:1234"],
        ),
        (lambda adb: adb.forward_list(), ["forward", "--list"]),
        (lambda adb: adb.forward_remove("tcp:8080"), ["forward", "--remove", "tcp:8080"]),
        (lambda adb: adb.forward_remove_all(), ["forward", "--remove-all"]),
        (
            lambda adb: adb.reverse("localabstract:app", "tcp:9000"),
            ["reverse", "localabstract:app", "tcp:9000"],
        ),
        (lambda adb: adb.reverse_list(), ["reverse", "--list"]),
        (lambda adb: adb.reverse_remove("tcp:9000"), ["reverse", "--remove", "tcp:9000"]),
        (lambda adb: adb.reverse_remove_all(), ["reverse", "--remove-all"]),
        (lambda adb: adb.mdns_check(), ["mdns", "check"]),
        (lambda adb: adb.mdns_services(), ["mdns", "services"]),
    ],
)
def test_networking_commands(adb: Adb, factory, expected: list[str]) -> None:
    assert _args(factory(adb)) == expected


def test_networking_validates_input(adb: Adb) -> None:
    with pytest.raises(InvalidFormat):
        adb.forward("tcp:localhost:80", "tcp:80")
    with pytest.raises(InvalidValue):
        adb.connect("10.0.0.1", 70000).build()


def test_forward_exposes_endpoints(adb: Adb) -> None:
    forward = adb.forward("tcp:8080", "jdwp:7")

    assert forward.local == Tcp(port=8080)
    assert forward.remote == Jdwp(7)


@pytest.mark.parametrize(
    ("factory", "expected"),
    [
        (lambda adb: adb.push("a.txt", "/sdcard/"), ["push", "a.txt", "/sdcard/"]),
        (
            lambda adb: adb.push(["a", Path("b")], "/sdcard/").sync().dry_run().compression("zstd"),
            ["push", "--sync", "-n", "-z", "zstd", "a", "b", "/sdcard/"],
        ),
        (
            lambda adb: adb.push("a", "/sdcard/").compression(CompressionAlgorithm.LZ4).no_compression(),
            ["push", "-Z", "a", "/sdcard/"],
        ),
        (lambda adb: adb.pull("/sdcard/x", "."), ["pull", "/sdcard/x", "."]),
        (
            lambda adb: adb.pull(["/a", "/b"], "out").preserve().no_compression(),
            ["pull", "-a", "-Z", "/a", "/b", "out"],
        ),
        (lambda adb: adb.sync(), ["sync"]),
        (
            lambda adb: adb.sync("vendor").dry_run().list_only().compression("brotli"),
            ["sync", "-n", "-l", "-z", "brotli", "vendor"],
        ),
    ],
)
def test_file_transfer_commands(adb: Adb, factory, expected: list[str]) -> None:
    assert _args(factory(adb)) == expected


def test_unknown_compression_algorithm_is_rejected(adb: Adb) -> None:
    with pytest.raises(ValueError):
        adb.push("a", "/sdcard").compression("gzip")


@pytest.mark.parametrize(
    ("factory", "expected"),
    [
        (lambda adb: adb.install("app.apk"), ["install", "app.apk"]),
        (
            lambda adb: adb.install("app.apk").replace().grant_permissions().abi("arm64-v8a").instant(),
            ["install", "-r", "-g", "--abi", "arm64-v8a", "--instant", "app.apk"],
        ),
        (
            lambda adb: adb.install("app.apk").streaming().no_streaming().fastdeploy().no_fastdeploy(),
            ["install", "--no-streaming", "-no-fastdeploy", "app.apk"],
        ),
        (
            lambda adb: adb.install("app.apk").force_agent().date_check_agent().version_check_agent().local_agent(),
            ["install", "-force-agent", "-date-check-agent", "--version-check-agent", "--local-agent", "app.apk"],
        ),
        (
            lambda adb: adb.install_multiple("base.apk", "split.apk").partial().downgrade(),
            ["install-multiple", "-d", "-p", "base.apk", "split.apk"],
        ),
        (
            lambda adb: adb.install_multi_package("a.apk", "b.apk").allow_test().sdcard().forward_lock(),
            ["install-multi-package", "-l", "-t", "-s", "a.apk", "b.apk"],
        ),
        (lambda adb: adb.uninstall("com.example"), ["uninstall", "com.example"]),
        (lambda adb: adb.uninstall("com.example").keep_data(), ["uninstall", "-k", "com.example"]),
    ],
)
def test_app_installation_commands(adb: Adb, factory, expected: list[str]) -> None:
    assert _args(factory(adb)) == expected


@pytest.mark.parametrize(
    ("factory", "expected"),
    [
        (lambda adb: adb.shell(), ["shell"]),
        (lambda adb: adb.shell("ls", "-l"), ["shell", "ls", "-l"]),
        (
            lambda adb: adb.shell().escape("none").no_stdin().force_pty().no_remote_errors().arg("id"),
            ["shell", "-e", "none", "-n", "-tt", "-x", "id"],
        ),
        (lambda adb: adb.shell().disable_pty().args("echo", "hi"), ["shell", "-T", "echo", "hi"]),
        (lambda adb: adb.shell("top").enable_pty().escape("~"), ["shell", "-e", "~", "-t", "top"]),
        (lambda adb: adb.emu("kill"), ["emu", "kill"]),
    ],
)
def test_shell_commands(adb: Adb, factory, expected: list[str]) -> None:
    assert _args(factory(adb)) == expected


def test_shell_escape_must_be_one_character(adb: Adb) -> None:
    with pytest.raises(InvalidValue):
        adb.shell().escape("ab")


@pytest.mark.parametrize(
    ("factory", "expected"),
    [
        (lambda adb: adb.wait_for(WaitForState.DEVICE), ["wait-for-device"]),
        (lambda adb: adb.wait_for("recovery", "usb"), ["wait-for-usb-recovery"]),
        (
            lambda adb: adb.wait_for("device").transport(WaitForTransport.ANY).state("disconnect"),
            ["wait-for-any-disconnect"],
        ),
        (lambda adb: adb.get_state(), ["get-state"]),
        (lambda adb: adb.get_serialno(), ["get-serialno"]),
        (lambda adb: adb.get_devpath(), ["get-devpath"]),
        (lambda adb: adb.remount(), ["remount"]),
        (lambda adb: adb.remount().reboot(), ["remount", "-R"]),
        (lambda adb: adb.reboot(), ["reboot"]),
        (lambda adb: adb.reboot(RebootTarget.BOOTLOADER), ["reboot", "bootloader"]),
        (lambda adb: adb.reboot().target("sideload-auto-reboot"), ["reboot", "sideload-auto-reboot"]),
        (lambda adb: adb.sideload(), ["sideload"]),
        (lambda adb: adb.sideload("ota.zip"), ["sideload", "ota.zip"]),
        (lambda adb: adb.sideload_auto_reboot(), ["sideload-auto-reboot"]),
        (lambda adb: adb.root(), ["root"]),
        (lambda adb: adb.unroot(), ["unroot"]),
        (lambda adb: adb.restart_usb(), ["usb"]),
        (lambda adb: adb.restart_tcpip(5555), ["tcpip", "5555"]),
    ],
)
def test_scripting_commands(adb: Adb, factory, expected: list[str]) -> None:
    assert _args(factory(adb)) == expected


def test_scripting_validates_input(adb: Adb) -> None:
    with pytest.raises(ValueError):
        adb.wait_for("asleep")
    with pytest.raises(InvalidValue):
        adb.restart_tcpip(65536)
