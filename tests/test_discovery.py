import pytest

from cryptojackal.core.errors import UpstreamError
from cryptojackal.discovery.service import (
    DiscoveryService,
    calculate_security_score,
    detect_opportunity,
)

from conftest import FakeClock, FakeCoinGecko, FakeDexScreener, make_token


def _service(coingecko=None, dexscreener=None, clock=None, ttl=300.0):
    return DiscoveryService(
        coingecko or FakeCoinGecko(),
        dexscreener or FakeDexScreener(),
        cache_ttl=ttl,
        clock=clock or FakeClock(),
    )


def test_trending_tokens_are_cached_within_ttl():
    cg = FakeCoinGecko(trending=[make_token("AAA"), make_token("BBB")])
    clock = FakeClock()
    svc = _service(coingecko=cg, clock=clock)

    first = svc.get_trending_tokens()
    clock.advance(299)
    second = svc.get_trending_tokens()

    assert cg.trending_calls == 1
    assert first == second
    assert [t.symbol for t in second] == ["AAA", "BBB"]


def test_trending_cache_refreshes_after_ttl():
    cg = FakeCoinGecko(trending=[make_token("AAA")])
    clock = FakeClock()
    svc = _service(coingecko=cg, clock=clock)

    svc.get_trending_tokens()
    clock.advance(300)
    cg.trending = [make_token("NEW")]
    refreshed = svc.get_trending_tokens()

    assert cg.trending_calls == 2
    assert [t.symbol for t in refreshed] == ["NEW"]

    svc.get_trending_tokens()
    assert cg.trending_calls == 2


def test_trending_fetch_error_is_not_masked_by_stale_cache():
    cg = FakeCoinGecko(trending=[make_token("AAA")])
    clock = FakeClock()
    svc = _service(coingecko=cg, clock=clock)
    svc.get_trending_tokens()

    clock.advance(301)
    cg.error = UpstreamError("CoinGecko", "trending", "API error: 503", status_code=503)
    with pytest.raises(UpstreamError):
        svc.get_trending_tokens()


def test_empty_trending_result_is_not_cached():
    cg = FakeCoinGecko(trending=[])
    svc = _service(coingecko=cg)
    svc.get_trending_tokens()
    svc.get_trending_tokens()
    assert cg.trending_calls == 2


def test_cache_belongs_to_the_instance():
    cg = FakeCoinGecko(trending=[make_token("AAA")])
    a = _service(coingecko=cg)
    b = _service(coingecko=cg)
    a.get_trending_tokens()
    b.get_trending_tokens()
    assert cg.trending_calls == 2


@pytest.mark.parametrize(
    "liquidity,volume,market_cap,expected",
    [
        (0, 0, 0, 0.5),
        (60_000, 0, 0, 0.6),
        (150_000, 0, 0, 0.7),
        (0, 60_000, 0, 0.6),
        (0, 150_000, 0, 0.65),
        (0, 0, 1, 0.6),
        (150_000, 150_000, 1e9, 0.95),
        (100_000, 100_000, 0, 0.7),  # thresholds are strict
    ],
)
def test_security_score(liquidity, volume, market_cap, expected):
    token = make_token(liquidity=liquidity, volume_24h=volume, market_cap=market_cap)
    assert calculate_security_score(token) == pytest.approx(expected)


def test_security_score_never_exceeds_one():
    token = make_token(liquidity=1e12, volume_24h=1e12, market_cap=1e12)
    assert 0.0 <= calculate_security_score(token) <= 1.0


def test_opportunity_qualifies_on_momentum_and_liquidity():
    opp = detect_opportunity(make_token(price_change_24h=15, liquidity=20_000), 10_000)
    assert opp is not None
    assert opp.confidence_score >= 0.5
    assert opp.strategy == "momentum"
    assert opp.expected_profit == pytest.approx(1.5)
    assert opp.price_impact == pytest.approx(0.01)
    assert opp.expires_at > opp.created_at


def test_opportunity_rejected_below_min_liquidity():
    assert detect_opportunity(make_token(price_change_24h=15, liquidity=5_000), 10_000) is None


def test_opportunity_rejected_without_enough_momentum():
    assert detect_opportunity(make_token(price_change_24h=10, liquidity=50_000), 10_000) is None


def test_find_opportunities_scores_strong_mover():
    token = make_token(price_change_24h=25, volume_24h=150_000, liquidity=20_000)
    svc = _service(dexscreener=FakeDexScreener(gainers=[token]))

    opportunities = svc.find_opportunities("ethereum", 10_000)

    assert len(opportunities) == 1
    opp = opportunities[0]
    assert opp.confidence_score == pytest.approx(0.8)
    assert opp.expected_profit == pytest.approx(2.5)
    assert opp.token == token


def test_find_opportunities_filters_and_sorts_by_confidence():
    gainers = [
        make_token("MID", price_change_24h=40, volume_24h=10, liquidity=20_000),  # 0.7
        make_token("LOW", price_change_24h=12, volume_24h=10, liquidity=20_000),  # 0.5
        make_token("THIN", price_change_24h=30, volume_24h=500_000, liquidity=1_000),
        make_token("TOP", price_change_24h=22, volume_24h=200_000, liquidity=20_000),  # 0.8
        make_token("TIE", price_change_24h=21, volume_24h=10, liquidity=20_000),  # 0.7
    ]
    svc = _service(dexscreener=FakeDexScreener(gainers=gainers))

    opportunities = svc.find_opportunities("ethereum", 10_000)

    # Equal confidence keeps the incoming order (MID before TIE)
    assert [o.token.symbol for o in opportunities] == ["TOP", "MID", "TIE", "LOW"]


def test_find_opportunities_propagates_upstream_errors():
    dex = FakeDexScreener(error=UpstreamError("DexScreener", "boosted tokens", "API error: 500"))
    svc = _service(dexscreener=dex)
    with pytest.raises(UpstreamError):
        svc.find_opportunities("ethereum", 10_000)


def test_analyze_token_prefers_dexscreener():
    token = make_token(address="0xabc", liquidity=200_000, volume_24h=200_000)
    cg = FakeCoinGecko()
    svc = _service(coingecko=cg, dexscreener=FakeDexScreener(search_results=[token]))

    result = svc.analyze_token("0xabc")

    assert result is not None
    assert result.address == "0xabc"
    assert result.security_score == pytest.approx(0.85)
    assert cg.contract_calls == []


def test_analyze_token_falls_back_to_coingecko():
    cg_token = make_token(address="0xabc", market_cap=5e6)
    cg = FakeCoinGecko(contract=cg_token)
    dex = FakeDexScreener(error=UpstreamError("DexScreener", "pairs", "timeout"))
    svc = _service(coingecko=cg, dexscreener=dex)

    result = svc.analyze_token("0xabc")

    assert cg.contract_calls == [("ethereum", "0xabc")]
    assert result.security_score == pytest.approx(0.6)
    # The source token is left untouched
    assert cg_token.security_score == 0.0


def test_analyze_token_returns_none_when_unknown():
    svc = _service(coingecko=FakeCoinGecko(contract=None), dexscreener=FakeDexScreener())
    assert svc.analyze_token("0xnothing") is None


def test_analyze_token_raises_when_fallback_fails():
    cg = FakeCoinGecko(error=UpstreamError("CoinGecko", "contract", "API error: 500"))
    svc = _service(coingecko=cg, dexscreener=FakeDexScreener())
    with pytest.raises(UpstreamError):
        svc.analyze_token("0xabc")


def test_new_tokens_and_search_delegate_to_dexscreener():
    token = make_token("NEW")
    svc = _service(dexscreener=FakeDexScreener(gainers=[token], search_results=[token]))
    assert svc.get_new_tokens("ethereum") == [token]
    assert svc.search_tokens("new") == [token]
