import pytest

from cryptojackal.core.config import Config
from cryptojackal.core.models import TradingMode

ENV_VARS = (
    "COINGECKO_API_KEY",
    "PAPER_TRADING_MODE",
    "INITIAL_BALANCE",
    "SCAN_INTERVAL_SECONDS",
    "MIN_LIQUIDITY",
    "TRADE_AMOUNT",
    "CHAIN",
    "CACHE_TTL_SECONDS",
    "REQUEST_TIMEOUT_SECONDS",
    "LOG_LEVEL",
)


@pytest.fixture
def env_file(tmp_path, monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / ".env"
    path.write_text("")
    return path


def test_defaults(env_file):
    config = Config.from_env(str(env_file))

    assert config.coingecko_api_key == ""
    assert config.paper_trading_mode is True
    assert config.mode is TradingMode.PAPER
    assert config.initial_balance == 10.0
    assert config.scan_interval == 30.0
    assert config.min_liquidity == 10_000.0
    assert config.trade_amount == 0.1
    assert config.chain == "ethereum"
    assert config.cache_ttl == 300.0
    assert config.request_timeout == 30.0
    assert config.log_level == "INFO"


def test_values_from_dotenv_file(env_file):
    env_file.write_text(
        "COINGECKO_API_KEY=cg-demo\n"
        "PAPER_TRADING_MODE=false\n"
        "INITIAL_BALANCE=250\n"
        "SCAN_INTERVAL_SECONDS=5\n"
        "CHAIN=base\n"
    )
    config = Config.from_env(str(env_file))

    assert config.coingecko_api_key == "cg-demo"
    assert config.mode is TradingMode.LIVE
    assert config.initial_balance == 250.0
    assert config.scan_interval == 5.0
    assert config.chain == "base"


def test_environment_wins_over_dotenv(env_file, monkeypatch):
    env_file.write_text("MIN_LIQUIDITY=1\n")
    monkeypatch.setenv("MIN_LIQUIDITY", "50000")
    assert Config.from_env(str(env_file)).min_liquidity == 50_000.0


@pytest.mark.parametrize("raw,expected", [("1", True), ("YES", True), (" true ", True), ("0", False), ("no", False)])
def test_paper_mode_flag(env_file, monkeypatch, raw, expected):
    monkeypatch.setenv("PAPER_TRADING_MODE", raw)
    assert Config.from_env(str(env_file)).paper_trading_mode is expected


@pytest.mark.parametrize(
    "name,value",
    [
        ("INITIAL_BALANCE", "-1"),
        ("SCAN_INTERVAL_SECONDS", "0"),
        ("TRADE_AMOUNT", "-0.5"),
        ("TRADE_AMOUNT", "0"),
        ("REQUEST_TIMEOUT_SECONDS", "0"),
        ("REQUEST_TIMEOUT_SECONDS", "-3"),
        ("MIN_LIQUIDITY", "lots"),
    ],
)
def test_invalid_values_raise(env_file, monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        Config.from_env(str(env_file))
