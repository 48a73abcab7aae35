import pytest

import main
from autoirrigation.core.exceptions import ConfigurationError
from main import load_timezone, parse_args


def test_run_requires_a_device():
    with pytest.raises(SystemExit):
        parse_args(["run"])


def test_run_all_defaults():
    args = parse_args(["run-all"])

    assert args.command == "run-all"
    assert args.warmup == 2.0


def test_run_one_device():
    args = parse_args(["--log-level", "debug", "run", "--device", "sprinkler_01", "--warmup", "0"])

    assert (args.command, args.device, args.warmup, args.log_level) == ("run", "sprinkler_01", 0.0, "debug")


def test_invalid_timezone_is_a_configuration_error():
    with pytest.raises(ConfigurationError, match="Mars/Olympus_Mons"):
        load_timezone("Mars/Olympus_Mons")


def test_invalid_timezone_exits_with_configuration_status(monkeypatch):
    monkeypatch.setattr(main.settings, "SCHEDULE_TIMEZONE", "Not/AZone")

    assert main.main(["run-all", "--warmup", "0"]) == 2
