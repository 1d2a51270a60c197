import pytest
from concentration.config import DEFAULT_REVEAL_DELAY, ServerConfig, load_config
from concentration.errors import ConfigError


def test_positional_port_and_dimension(monkeypatch):
    monkeypatch.delenv("CONCENTRATION_REVEAL_DELAY", raising=False)
    cfg = load_config(["5555", "4"])
    assert cfg == ServerConfig(port=5555, dimension=4, reveal_delay=DEFAULT_REVEAL_DELAY)


def test_dimension_is_not_validated_at_startup():
    assert load_config(["5555", "3"]).dimension == 3


@pytest.mark.parametrize("argv", [[], ["5555"], ["5555", "4", "9"], ["port", "4"], ["5555", "four"]])
def test_bad_arguments_exit_nonzero(argv):
    with pytest.raises(SystemExit) as exc:
        load_config(argv)
    assert exc.value.code != 0


def test_options():
    cfg = load_config(["0", "2", "--host", "127.0.0.1", "--reveal-delay", "0",
                       "--cheat", "--status-port", "8080", "-v"])
    assert cfg.host == "127.0.0.1"
    assert cfg.reveal_delay == 0
    assert cfg.cheat and cfg.verbose
    assert cfg.status_port == 8080


def test_reveal_delay_from_environment(monkeypatch):
    monkeypatch.setenv("CONCENTRATION_REVEAL_DELAY", "0.1")
    assert load_config(["5555", "2"]).reveal_delay == 0.1
    # explicit flag wins
    assert load_config(["5555", "2", "--reveal-delay", "0.2"]).reveal_delay == 0.2


def test_bad_reveal_delay_in_environment(monkeypatch):
    monkeypatch.setenv("CONCENTRATION_REVEAL_DELAY", "soon")
    with pytest.raises(SystemExit):
        load_config(["5555", "2"])


def test_out_of_range_port():
    with pytest.raises(ConfigError):
        load_config(["70000", "2"])
    with pytest.raises(ConfigError):
        ServerConfig(port=1, dimension=2, reveal_delay=-1)


@pytest.mark.parametrize("value", ["inf", "nan"])
def test_reveal_delay_must_be_finite(value):
    with pytest.raises(ConfigError):
        load_config(["5555", "2", "--reveal-delay", value])


def test_non_finite_delay_from_environment_is_rejected(monkeypatch):
    monkeypatch.setenv("CONCENTRATION_REVEAL_DELAY", "inf")
    with pytest.raises(ConfigError):
        load_config(["5555", "2"])
