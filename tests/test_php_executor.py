import os
import signal

import pytest

from sfcli.php_executor import (
    PHPValues,
    detect_script_dir,
    get_binary_names,
    is_binary_name,
    paths_to_watch,
    phpini_dir_for_dir,
    should_signal_be_ignored,
    symlink,
)


def test_binary_names_list():
    assert get_binary_names() == [
        "php",
        "pecl",
        "pear",
        "php-fpm",
        "php-cgi",
        "php-config",
        "phpdbg",
        "phpize",
    ]


@pytest.mark.parametrize("name", ["php", "php-fpm", "phpize", "pecl"])
def test_is_binary_name_true(name):
    assert is_binary_name(name) is True


@pytest.mark.parametrize("name", ["composer", "php7.4", "", "PHP"])
def test_is_binary_name_false(name):
    assert is_binary_name(name) is False


def test_detect_script_dir_plain_script(tmp_path):
    script = tmp_path / "sub" / "run.php"
    assert detect_script_dir([str(script)]) == str(tmp_path / "sub")


def test_detect_script_dir_skips_option_values(tmp_path):
    script = tmp_path / "bin" / "console"
    args = ["-d", "memory_limit=-1", "-n", str(script)]
    assert detect_script_dir(args) == str(tmp_path / "bin")


def test_detect_script_dir_attached_option_value(tmp_path):
    script = tmp_path / "app" / "test.php"
    assert detect_script_dir(["-dfoo=bar", str(script)]) == str(tmp_path / "app")


def test_detect_script_dir_dash_f_separate(tmp_path):
    script = tmp_path / "x" / "a.php"
    assert detect_script_dir(["-f", str(script)]) == str(tmp_path / "x")


def test_detect_script_dir_dash_f_attached(tmp_path):
    script = tmp_path / "y" / "b.php"
    assert detect_script_dir(["-f" + str(script)]) == str(tmp_path / "y")


def test_detect_script_dir_relative(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert detect_script_dir(["app/test.php"]) == os.path.join(os.getcwd(), "app")


def test_detect_script_dir_falls_back_to_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert detect_script_dir(["-n", "--", "ignored.php"]) == os.getcwd()
    assert detect_script_dir([]) == os.getcwd()


def test_phpini_dir_found_in_parent(tmp_path):
    (tmp_path / "php.ini").write_text("memory_limit=1G\n")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert phpini_dir_for_dir(str(nested)) == str(tmp_path)


def test_phpini_dir_closest_wins(tmp_path):
    (tmp_path / "php.ini").write_text("")
    nested = tmp_path / "a"
    nested.mkdir()
    (nested / "php.ini").write_text("")
    assert phpini_dir_for_dir(str(nested)) == str(nested)


def test_paths_to_watch(tmp_path):
    (tmp_path / "php.ini").write_text("")
    nested = tmp_path / "src"
    nested.mkdir()
    assert paths_to_watch(str(nested)) == [str(tmp_path / "php.ini")]


def test_should_not_ignore_sigterm():
    assert should_signal_be_ignored(signal.SIGTERM) is False


def test_sigchld_ignored_on_posix():
    sigchld = getattr(signal, "SIGCHLD", None)
    expected = os.name != "nt" and sigchld is not None
    assert should_signal_be_ignored(sigchld if sigchld is not None else -1) is expected


def test_symlink_gives_same_content(tmp_path):
    source = tmp_path / "php-config"
    source.write_text("#!/bin/sh\necho config\n")
    destination = tmp_path / "bin-php-config"
    symlink(str(source), str(destination))
    assert destination.read_text() == source.read_text()


def test_symlink_existing_destination_fails(tmp_path):
    source = tmp_path / "a"
    source.write_text("a")
    destination = tmp_path / "b"
    destination.write_text("b")
    if os.name == "nt":
        symlink(str(source), str(destination))
        assert destination.read_text() == "a"
    else:
        with pytest.raises(FileExistsError):
            symlink(str(source), str(destination))


def test_php_values_to_bytes():
    values = PHPValues()
    values.merge({"blackfire.agent_socket": "tcp://127.0.0.1:8307"})
    values.merge({"memory_limit": "1G"})
    assert values.to_bytes() == b"blackfire.agent_socket=tcp://127.0.0.1:8307\nmemory_limit=1G"
    assert len(values) == 2
    assert list(values)[1] == ("memory_limit", "1G")


def test_php_values_empty():
    assert PHPValues().to_bytes() == b""
    assert len(PHPValues()) == 0